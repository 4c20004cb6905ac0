#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common CRUD operations and utilities.
All entity managers inherit from this class.

Key Features:
    - Retry logic for database lock handling
    - Generic lookup, listing and counting helpers
    - Insert-or-ignore helpers for association tables
    - Referential checks performed before deletes

Usage:
    Subclass BaseManager for each entity type and implement:
    - exists(): Check if entity exists without exceptions
    - get(): Retrieve single entity
    - upsert(): Insert-or-ignore / insert-or-replace
    - delete(): Hard delete after checking references

Example:
    class TagManager(BaseManager):
        def upsert(self, metadata: Dict[str, Any]) -> Tag:
            DataValidator.validate_required_fields(metadata, ["id"])
            ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

# --- Third party imports ---
from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

# --- Local imports ---
from curator.core.exceptions import (
    DatabaseError,
    DuplicateMembership,
    ValidationError,
)
from curator.core.logging_manager import CuratorLogger, safe_logger
from curator.core.validators import DataValidator

T = TypeVar("T")


class BaseManager(ABC):
    """
    Abstract base manager providing common CRUD operations and utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[CuratorLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable,
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)

                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    @staticmethod
    def _require_key(value: Any, label: str) -> str:
        """
        Normalize a primary key value, rejecting empty keys.

        Raises:
            ValidationError: If the key is empty after normalization
        """
        key = DataValidator.normalize_string(value)
        if not key:
            raise ValidationError(f"Required field '{label}' missing or empty")
        return key

    # -------------------------------------------------------------------------
    # Generic CRUD Helpers
    # -------------------------------------------------------------------------

    def _get_by_key(self, model_class: Type[T], key: Any) -> Optional[T]:
        """
        Get entity by primary key.

        Args:
            model_class: ORM model class
            key: Primary key value (normalized when a string)

        Returns:
            Entity if found, None otherwise
        """
        if isinstance(key, str):
            key = DataValidator.normalize_string(key)
        if key is None:
            return None
        return self.session.get(model_class, key)

    def _get_all(
        self,
        model_class: Type[T],
        order_by: Optional[str] = None,
        **filters: Any,
    ) -> List[T]:
        """
        Get all entities of a type with optional filtering and ordering.

        Args:
            model_class: ORM model class
            order_by: Column name to order by (optional)
            **filters: Equality filter conditions

        Returns:
            List of entities
        """
        stmt = select(model_class)
        if filters:
            stmt = stmt.filter_by(**filters)
        if order_by and hasattr(model_class, order_by):
            stmt = stmt.order_by(getattr(model_class, order_by))
        return list(self.session.scalars(stmt).all())

    def _count(self, model_class: Type[T], **filters: Any) -> int:
        """
        Count entities with optional filtering.

        Args:
            model_class: ORM model class
            **filters: Equality filter conditions

        Returns:
            Count of matching entities
        """
        self.session.flush()
        stmt = select(func.count()).select_from(model_class)
        if filters:
            stmt = stmt.filter_by(**filters)
        return self.session.scalar(stmt) or 0

    # -------------------------------------------------------------------------
    # Association Helpers
    # -------------------------------------------------------------------------

    def _link_exists(self, table: Table, values: Dict[str, Any]) -> bool:
        """Check whether a join row with exactly these values exists."""
        self.session.flush()
        stmt = select(func.count()).select_from(table)
        for column, value in values.items():
            stmt = stmt.where(table.c[column] == value)
        return bool(self.session.scalar(stmt))

    def _count_links(self, table: Table, column: str, value: Any) -> int:
        """Count join rows referencing a value through one column."""
        self.session.flush()
        stmt = (
            select(func.count())
            .select_from(table)
            .where(table.c[column] == value)
        )
        return self.session.scalar(stmt) or 0

    def _insert_link(
        self, table: Table, values: Dict[str, Any], strict: bool = False
    ) -> bool:
        """
        Insert a join row with insert-or-ignore semantics.

        Args:
            table: Association table
            values: Column values of the row
            strict: Raise instead of ignoring an existing row

        Returns:
            True if a row was inserted, False if it already existed

        Raises:
            DuplicateMembership: If the row exists and strict is True
        """
        if self._link_exists(table, values):
            if strict:
                raise DuplicateMembership(
                    f"Row already exists in {table.name}: {values}"
                )
            return False

        self._execute_with_retry(
            lambda: self.session.execute(insert(table).values(**values))
        )
        return True

    def _delete_links(self, table: Table, values: Dict[str, Any]) -> int:
        """
        Delete join rows matching all given column values.

        Returns:
            Number of rows removed
        """
        self.session.flush()
        stmt = delete(table)
        for column, value in values.items():
            stmt = stmt.where(table.c[column] == value)
        result = self.session.execute(stmt)
        return result.rowcount or 0
