#!/usr/bin/env python3
"""
collection_manager.py
--------------------
Manages Collection entities and their membership rows.

Key Features:
    - Insert-or-ignore upsert, explicit update
    - Membership add/remove with referential checks
    - Deletes refused while memberships remain

Usage:
    col_mgr = CollectionManager(session, logger)

    col_mgr.upsert({"id": "awesome-rust", "summary": "Rust things"})
    col_mgr.add_thing("awesome-rust", "https://example.org")
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from curator.core.exceptions import ForeignKeyViolation, NotFound
from curator.core.validators import DataValidator
from curator.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from curator.database.models import Collection, Thing, collection_thing
from .base_manager import BaseManager


class CollectionManager(BaseManager):
    """Manages collection table operations and the collection_thing join table."""

    @handle_db_errors
    @log_database_operation("collection_exists")
    def exists(self, collection_id: str) -> bool:
        """Check if a collection exists without raising exceptions."""
        return self._get_by_key(Collection, collection_id) is not None

    @handle_db_errors
    @log_database_operation("get_collection")
    def get(self, collection_id: str) -> Optional[Collection]:
        """Retrieve a collection by id, or None."""
        return self._get_by_key(Collection, collection_id)

    @handle_db_errors
    @log_database_operation("get_all_collections")
    def get_all(self) -> List[Collection]:
        """Retrieve all collections ordered by id."""
        return self._get_all(Collection, order_by="id")

    @handle_db_errors
    @log_database_operation("upsert_collection")
    @validate_metadata(["id", "summary"])
    def upsert(self, metadata: Dict[str, Any]) -> Collection:
        """
        Insert a collection if absent; leave an existing row unchanged.

        Args:
            metadata: Dictionary with keys:
                Required:
                - id: Collection identifier
                - summary: Description
                Optional:
                - url: Source location

        Returns:
            The stored Collection
        """
        collection_id = self._require_key(metadata["id"], "id")

        existing = self.session.get(Collection, collection_id)
        if existing is not None:
            return existing

        collection = Collection(
            id=collection_id,
            url=DataValidator.normalize_string(metadata.get("url")),
            summary=self._require_key(metadata["summary"], "summary"),
        )
        self.session.add(collection)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Created collection: {collection_id}")

        return collection

    @handle_db_errors
    @log_database_operation("update_collection")
    def update(self, collection_id: str, metadata: Dict[str, Any]) -> Collection:
        """
        Overwrite url and/or summary of an existing collection.

        Raises:
            NotFound: If the collection does not exist
        """
        collection = self._get_by_key(Collection, collection_id)
        if collection is None:
            raise NotFound(f"Collection not found: '{collection_id}'")

        if "url" in metadata:
            collection.url = DataValidator.normalize_string(metadata["url"])
        if "summary" in metadata:
            collection.summary = self._require_key(metadata["summary"], "summary")

        self.session.flush()
        return collection

    @handle_db_errors
    @log_database_operation("delete_collection")
    def delete(self, collection_id: str) -> None:
        """
        Delete a collection with no remaining members.

        Raises:
            NotFound: If the collection does not exist
            ForeignKeyViolation: If membership rows still reference it
        """
        collection = self._get_by_key(Collection, collection_id)
        if collection is None:
            raise NotFound(f"Collection not found: '{collection_id}'")

        members = self._count_links(collection_thing, "collection_id", collection.id)
        if members:
            raise ForeignKeyViolation(
                f"Collection '{collection.id}' still has {members} members"
            )

        self.session.delete(collection)
        self.session.flush()

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("add_collection_thing")
    def add_thing(self, collection_id: str, url: str, strict: bool = False) -> bool:
        """
        Add a thing to a collection.

        Args:
            collection_id: The collection identifier
            url: The thing url
            strict: Raise DuplicateMembership instead of ignoring an
                existing row

        Returns:
            True if a row was inserted, False if it already existed

        Raises:
            ForeignKeyViolation: If the collection or the thing is missing
            DuplicateMembership: If strict and the thing is already a member
        """
        collection = self._get_by_key(Collection, collection_id)
        thing = self._get_by_key(Thing, url)
        if collection is None:
            raise ForeignKeyViolation(
                f"Unknown collection '{collection_id}' for thing '{url}'"
            )
        if thing is None:
            raise ForeignKeyViolation(
                f"Cannot add unknown thing '{url}' to collection '{collection_id}'"
            )

        return self._insert_link(
            collection_thing,
            {"collection_id": collection.id, "thing_id": thing.url},
            strict=strict,
        )

    @handle_db_errors
    @log_database_operation("remove_collection_thing")
    def remove_thing(self, collection_id: str, url: str) -> bool:
        """Remove a thing from a collection; False if it wasn't a member."""
        removed = self._delete_links(
            collection_thing,
            {
                "collection_id": DataValidator.normalize_string(collection_id),
                "thing_id": DataValidator.normalize_string(url),
            },
        )
        return removed > 0

    @handle_db_errors
    @log_database_operation("get_collection_things")
    def things_in(self, collection_id: str) -> List[Thing]:
        """Things belonging to a collection, ordered by name."""
        stmt = (
            select(Thing)
            .join(collection_thing, collection_thing.c.thing_id == Thing.url)
            .where(
                collection_thing.c.collection_id
                == DataValidator.normalize_string(collection_id)
            )
            .order_by(Thing.name)
        )
        return list(self.session.scalars(stmt).all())

    @handle_db_errors
    @log_database_operation("get_thing_collections")
    def collections_for(self, url: str) -> List[Collection]:
        """Collections a thing belongs to, ordered by id."""
        stmt = (
            select(Collection)
            .join(collection_thing, collection_thing.c.collection_id == Collection.id)
            .where(collection_thing.c.thing_id == DataValidator.normalize_string(url))
            .order_by(Collection.id)
        )
        return list(self.session.scalars(stmt).all())
