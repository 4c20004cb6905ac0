"""
Package Models
---------------

Content-addressed descriptors and the change journal.

Models:
    - Package: An ingested descriptor, keyed by the id derived from its body
    - ChangeRecord: Append-only log of catalog changes made by ingestion

The package id is computed from the body before storage rather than by
the database engine, so any SQLAlchemy backend can hold this table.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

# --- Third party imports ---
from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

# --- Local imports ---
from .base import Base, TimestampMixin, utc_now


class Package(TimestampMixin, Base):
    """
    An ingested package descriptor.

    Attributes:
        id: Identifier extracted from the body
        hash: SHA-256 of the canonical body
        body: The full descriptor
    """

    __tablename__ = "package"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    body: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<Package(id='{self.id}', hash='{self.hash[:12]}')>"


class ChangeOperation(str, Enum):
    """Kind of change recorded in the journal."""

    INSERT = "insert"
    REPLACE = "replace"
    DELETE = "delete"


class ChangeKind(str, Enum):
    """Entity type a change applies to."""

    PACKAGE = "package"
    THING = "thing"
    TAG = "tag"
    COLLECTION = "collection"


class ChangeRecord(Base):
    """
    One entry of the change journal.

    Attributes:
        id: Sequence number
        timestamp: When the change was committed
        operation: insert / replace / delete
        kind: package / thing / tag / collection
        entity_id: Identifier of the changed entity
        data: Optional payload (e.g. the package hash)
    """

    __tablename__ = "changelog"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    operation: Mapped[str] = mapped_column(String(16), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ChangeRecord({self.operation} {self.kind} '{self.entity_id}')>"
