#!/usr/bin/env python3
"""
changelog_manager.py
--------------------
Append-only journal of changes applied by ingestion.
"""
from typing import Any, Dict, List, Optional, Union

from curator.database.models import ChangeKind, ChangeOperation, ChangeRecord
from .base_manager import BaseManager


class ChangelogManager(BaseManager):
    """Records and lists ChangeRecord rows."""

    def record(
        self,
        operation: Union[ChangeOperation, str],
        kind: Union[ChangeKind, str],
        entity_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> ChangeRecord:
        """
        Append one change to the journal.

        Args:
            operation: insert, replace or delete
            kind: package, thing, tag or collection
            entity_id: Identifier of the changed entity
            data: Optional JSON payload

        Returns:
            The new ChangeRecord
        """
        record = ChangeRecord(
            operation=ChangeOperation(operation).value,
            kind=ChangeKind(kind).value,
            entity_id=entity_id,
            data=data,
        )
        self.session.add(record)
        self.session.flush()
        return record

    def get_all(self, kind: Optional[Union[ChangeKind, str]] = None) -> List[ChangeRecord]:
        """Journal entries in insertion order, optionally for one kind."""
        if kind is not None:
            return self._get_all(ChangeRecord, order_by="id", kind=ChangeKind(kind).value)
        return self._get_all(ChangeRecord, order_by="id")

    def count(self) -> int:
        """Number of journal entries."""
        return self._count(ChangeRecord)
