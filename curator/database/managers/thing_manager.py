#!/usr/bin/env python3
"""
thing_manager.py
--------------------
Manages Thing entities and their secondary tags.

A thing is identified by its url and carries exactly one primary
category (a Tag) plus any number of supplementary tags.

Key Features:
    - Upsert with caller-selected overwrite policy
    - Category references checked before writing
    - Insert-or-ignore (or strict) secondary tags
    - Deletes refused while join rows reference the thing

Usage:
    thing_mgr = ThingManager(session, logger)

    thing = thing_mgr.upsert({
        "url": "https://example.org",
        "name": "Example",
        "category_id": "tools",
    })
    thing_mgr.add_tag(thing.url, "cli")
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
from curator.database.models import (
    MISCELLANEOUS_TAG_ID,
    Tag,
    Thing,
    collection_thing,
    thing_tag,
)
from .base_manager import BaseManager


class ThingManager(BaseManager):
    """Manages thing table operations and the thing_tag join table."""

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("thing_exists")
    def exists(self, url: str) -> bool:
        """Check if a thing exists without raising exceptions."""
        return self._get_by_key(Thing, url) is not None

    @handle_db_errors
    @log_database_operation("get_thing")
    def get(self, url: str) -> Optional[Thing]:
        """
        Retrieve a thing by url.

        Args:
            url: The thing url

        Returns:
            Thing object if found, None otherwise
        """
        return self._get_by_key(Thing, url)

    @handle_db_errors
    @log_database_operation("get_all_things")
    def get_all(self, category_id: Optional[str] = None) -> List[Thing]:
        """
        Retrieve all things, optionally restricted to one category.

        Args:
            category_id: Primary category to filter on

        Returns:
            List of Thing objects ordered by name
        """
        if category_id:
            return self._get_all(Thing, order_by="name", category_id=category_id)
        return self._get_all(Thing, order_by="name")

    @handle_db_errors
    @log_database_operation("upsert_thing")
    @validate_metadata(["url", "name"])
    def upsert(self, metadata: Dict[str, Any], overwrite: bool = True) -> Thing:
        """
        Insert a thing, or resolve a conflict on an existing url.

        Args:
            metadata: Dictionary with keys:
                Required:
                - url: Location of the resource
                - name: Display name
                Optional:
                - summary: Description (empty strings are stored as NULL)
                - category_id: Primary tag (defaults to miscellaneous)
            overwrite: On an existing url, replace name/summary/category
                when True, keep the stored row when False

        Returns:
            The stored Thing

        Raises:
            ValidationError: If url or name are empty
            ForeignKeyViolation: If category_id does not reference a tag
        """
        url = self._require_key(metadata["url"], "url")
        name = self._require_key(metadata["name"], "name")
        summary = DataValidator.normalize_string(metadata.get("summary"))
        category_id = (
            DataValidator.normalize_string(metadata.get("category_id"))
            or MISCELLANEOUS_TAG_ID
        )

        if self.session.get(Tag, category_id) is None:
            raise ForeignKeyViolation(
                f"Unknown category '{category_id}' for thing '{url}'"
            )

        thing = self.session.get(Thing, url)
        if thing is None:
            thing = Thing(url=url, name=name, summary=summary, category_id=category_id)
            self.session.add(thing)
            if self.logger:
                self.logger.log_debug(
                    f"Created thing: {url}", {"category_id": category_id}
                )
        elif overwrite:
            thing.name = name
            thing.summary = summary
            thing.category_id = category_id
            if self.logger:
                self.logger.log_debug(
                    f"Replaced thing: {url}", {"category_id": category_id}
                )

        self.session.flush()
        return thing

    @handle_db_errors
    @log_database_operation("delete_thing")
    def delete(self, url: str) -> None:
        """
        Delete a thing once its join rows are gone.

        Args:
            url: The thing url

        Raises:
            NotFound: If the thing does not exist
            ForeignKeyViolation: If tags or collections still reference it
        """
        thing = self._get_by_key(Thing, url)
        if thing is None:
            raise NotFound(f"Thing not found: '{url}'")

        references = self.reference_count(thing.url)
        if references:
            raise ForeignKeyViolation(
                f"Thing '{thing.url}' is still referenced by "
                f"{references} tag or collection rows"
            )

        self.session.delete(thing)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Deleted thing: {thing.url}")

    def reference_count(self, url: str) -> int:
        """Number of thing_tag and collection_thing rows pointing at a thing."""
        url = DataValidator.normalize_string(url)
        return self._count_links(thing_tag, "thing_id", url) + self._count_links(
            collection_thing, "thing_id", url
        )

    # -------------------------------------------------------------------------
    # Secondary Tags
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("add_thing_tag")
    def add_tag(self, url: str, tag_id: str, strict: bool = False) -> bool:
        """
        Attach a secondary tag to a thing.

        Args:
            url: The thing url
            tag_id: The tag identifier
            strict: Raise DuplicateMembership instead of ignoring an
                existing row

        Returns:
            True if a row was inserted, False if it already existed

        Raises:
            ForeignKeyViolation: If the thing or the tag does not exist
            DuplicateMembership: If strict and the tag is already attached
        """
        thing = self._get_by_key(Thing, url)
        tag = self._get_by_key(Tag, tag_id)
        if thing is None:
            raise ForeignKeyViolation(f"Cannot tag unknown thing '{url}'")
        if tag is None:
            raise ForeignKeyViolation(f"Cannot attach unknown tag '{tag_id}' to '{url}'")

        return self._insert_link(
            thing_tag, {"thing_id": thing.url, "tag_id": tag.id}, strict=strict
        )

    @handle_db_errors
    @log_database_operation("remove_thing_tag")
    def remove_tag(self, url: str, tag_id: str) -> bool:
        """
        Detach a secondary tag from a thing.

        Returns:
            True if a row was removed, False if it wasn't attached
        """
        removed = self._delete_links(
            thing_tag,
            {
                "thing_id": DataValidator.normalize_string(url),
                "tag_id": DataValidator.normalize_string(tag_id),
            },
        )
        return removed > 0

    @handle_db_errors
    @log_database_operation("get_thing_tags")
    def tags_for(self, url: str) -> List[Tag]:
        """
        Get the secondary tags of a thing.

        Args:
            url: The thing url

        Returns:
            List of Tag objects ordered by id
        """
        stmt = (
            select(Tag)
            .join(thing_tag, thing_tag.c.tag_id == Tag.id)
            .where(thing_tag.c.thing_id == DataValidator.normalize_string(url))
            .order_by(Tag.id)
        )
        return list(self.session.scalars(stmt).all())
