#!/usr/bin/env python3
"""
tag_manager.py
--------------------
Manages Tag entities and the secondary classification of things.

Key Features:
    - Insert-or-ignore upsert (tags are never overwritten by ingestion)
    - Explicit update for catalog administration
    - Referentially checked deletes
    - Usage statistics

Usage:
    tag_mgr = TagManager(session, logger)

    # Create a tag if absent
    tag = tag_mgr.upsert({"id": "tools", "name": "Tools"})

    # Get all tags
    all_tags = tag_mgr.get_all()

    # Tags nobody uses
    unused = tag_mgr.get_unused()
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from curator.core.exceptions import ForeignKeyViolation, NotFound, ValidationError
from curator.core.validators import DataValidator
from curator.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from curator.database.models import MISCELLANEOUS_TAG_ID, Tag, Thing, thing_tag
from .base_manager import BaseManager


class TagManager(BaseManager):
    """
    Manages tag table operations.

    Tags are identified by an opaque string id. The well-known
    ``miscellaneous`` tag is the fallback category and cannot be deleted.
    """

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("tag_exists")
    def exists(self, tag_id: str) -> bool:
        """
        Check if a tag exists without raising exceptions.

        Args:
            tag_id: The tag identifier

        Returns:
            True if tag exists, False otherwise
        """
        return self._get_by_key(Tag, tag_id) is not None

    @handle_db_errors
    @log_database_operation("get_tag")
    def get(self, tag_id: str) -> Optional[Tag]:
        """
        Retrieve a tag by id.

        Args:
            tag_id: The tag identifier

        Returns:
            Tag object if found, None otherwise
        """
        return self._get_by_key(Tag, tag_id)

    @handle_db_errors
    @log_database_operation("get_all_tags")
    def get_all(self, order_by: str = "id") -> List[Tag]:
        """
        Retrieve all tags.

        Args:
            order_by: Field to order by ("id", "name", "usage_count")

        Returns:
            List of all Tag objects
        """
        if order_by == "usage_count":
            tags = self._get_all(Tag, order_by="id")
            return sorted(tags, key=self.usage_count, reverse=True)
        return self._get_all(Tag, order_by=order_by)

    @handle_db_errors
    @log_database_operation("upsert_tag")
    @validate_metadata(["id"])
    def upsert(self, metadata: Dict[str, Any]) -> Tag:
        """
        Insert a tag if absent; leave an existing row unchanged.

        Args:
            metadata: Dictionary with keys:
                Required:
                - id: Tag identifier
                Optional:
                - name: Display label
                - summary: Description
                - icon: Binary icon

        Returns:
            The stored Tag (existing or newly created)

        Raises:
            ValidationError: If id is empty
        """
        tag_id = self._require_key(metadata["id"], "id")

        existing = self.session.get(Tag, tag_id)
        if existing is not None:
            return existing

        tag = Tag(
            id=tag_id,
            name=DataValidator.normalize_string(metadata.get("name")),
            summary=DataValidator.normalize_string(metadata.get("summary")),
            icon=metadata.get("icon"),
        )
        self.session.add(tag)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Created tag: {tag_id}")

        return tag

    @handle_db_errors
    @log_database_operation("update_tag")
    def update(self, tag_id: str, metadata: Dict[str, Any]) -> Tag:
        """
        Overwrite descriptive fields of an existing tag.

        Only keys present in metadata are touched; the id never changes.

        Args:
            tag_id: The tag identifier
            metadata: Any of name, summary, icon

        Returns:
            Updated Tag

        Raises:
            NotFound: If the tag does not exist
        """
        tag = self._get_by_key(Tag, tag_id)
        if tag is None:
            raise NotFound(f"Tag not found: '{tag_id}'")

        for field in ("name", "summary"):
            if field in metadata:
                setattr(tag, field, DataValidator.normalize_string(metadata[field]))
        if "icon" in metadata:
            tag.icon = metadata["icon"]

        self.session.flush()
        return tag

    @handle_db_errors
    @log_database_operation("delete_tag")
    def delete(self, tag_id: str) -> None:
        """
        Delete a tag that nothing references.

        Args:
            tag_id: The tag identifier

        Raises:
            NotFound: If the tag does not exist
            ValidationError: If the tag is the fallback classifier
            ForeignKeyViolation: If a thing uses the tag as category or
                secondary tag
        """
        tag = self._get_by_key(Tag, tag_id)
        if tag is None:
            raise NotFound(f"Tag not found: '{tag_id}'")
        if tag.id == MISCELLANEOUS_TAG_ID:
            raise ValidationError(f"The '{MISCELLANEOUS_TAG_ID}' tag cannot be deleted")

        categorized = self._count(Thing, category_id=tag.id)
        tagged = self._count_links(thing_tag, "tag_id", tag.id)
        if categorized or tagged:
            raise ForeignKeyViolation(
                f"Tag '{tag.id}' is still referenced by "
                f"{categorized} thing categories and {tagged} thing tags"
            )

        self.session.delete(tag)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Deleted tag: {tag.id}")

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def usage_count(self, tag: Tag) -> int:
        """Number of things using the tag as category or secondary tag."""
        stmt = select(Thing.url).where(Thing.category_id == tag.id).union(
            select(thing_tag.c.thing_id).where(thing_tag.c.tag_id == tag.id)
        )
        self.session.flush()
        return len(self.session.execute(stmt).all())

    @handle_db_errors
    @log_database_operation("get_unused_tags")
    def get_unused(self) -> List[Tag]:
        """
        Get all tags that no thing references.

        Returns:
            List of unused Tag objects, ordered by id
        """
        return [tag for tag in self._get_all(Tag, order_by="id") if self.usage_count(tag) == 0]
