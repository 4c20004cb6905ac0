#!/usr/bin/env python3
"""
query.py
--------
Read-only projections of the catalog for renderers and exporters.

Every call opens its own session and returns detached, frozen views, so
consumers never hold ORM objects or session state. Nothing here writes.

Usage:
    query = CatalogQuery(db)

    for thing in query.list_things(tag_id="tools"):
        print(thing.name, thing.url)

    tag = query.get_tag("tools")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

# --- Third party ---
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

# --- Local imports ---
from curator.core.exceptions import NotFound
from curator.core.logging_manager import CuratorLogger
from .decorators import handle_db_errors, log_database_operation
from .manager import CatalogDB
from .models import Collection, Package, Tag, Thing, collection_thing, thing_tag


# ----- Views -----
@dataclass(frozen=True)
class TagView:
    id: str
    name: Optional[str]
    summary: Optional[str]
    icon: Optional[bytes] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @classmethod
    def from_model(cls, tag: Tag) -> "TagView":
        return cls(id=tag.id, name=tag.name, summary=tag.summary, icon=tag.icon)


@dataclass(frozen=True)
class ThingView:
    url: str
    name: str
    summary: Optional[str]
    category_id: str

    @classmethod
    def from_model(cls, thing: Thing) -> "ThingView":
        return cls(
            url=thing.url,
            name=thing.name,
            summary=thing.summary,
            category_id=thing.category_id,
        )


@dataclass(frozen=True)
class CollectionView:
    id: str
    summary: str
    url: Optional[str] = None

    @classmethod
    def from_model(cls, collection: Collection) -> "CollectionView":
        return cls(id=collection.id, summary=collection.summary, url=collection.url)


@dataclass(frozen=True)
class PackageView:
    """A stored descriptor. ``body`` is a copy of the canonical JSON body."""

    id: str
    hash: str
    body: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, package: Package) -> "PackageView":
        return cls(
            id=package.id,
            hash=package.hash,
            body=dict(package.body),
            created_at=package.created_at,
            updated_at=package.updated_at,
        )


# ----- Facade -----
class CatalogQuery:
    """
    Read-only access to the normalized catalog.

    Attributes:
        db: Catalog to read from
        logger: Logger for query tracking (defaults to the catalog's)
    """

    def __init__(self, db: CatalogDB, logger: Optional[CuratorLogger] = None) -> None:
        self.db = db
        self.logger = logger if logger is not None else db.logger

    # -------------------------------------------------------------------------
    # Things
    # -------------------------------------------------------------------------

    @handle_db_errors
    def list_things(
        self,
        tag_id: Optional[str] = None,
        collection_id: Optional[str] = None,
    ) -> Iterator[ThingView]:
        """
        Lazily list things, optionally filtered.

        Each call runs a fresh query; the returned generator holds its
        session only while it is being consumed.

        Args:
            tag_id: Keep things whose primary category or a secondary
                tag is this tag
            collection_id: Keep things that belong to this collection

        Yields:
            ThingView objects ordered by name, then url. Unknown tag or
            collection ids simply yield nothing.
        """
        stmt = select(Thing)

        if tag_id is not None:
            tagged = select(thing_tag.c.thing_id).where(thing_tag.c.tag_id == tag_id)
            stmt = stmt.where(or_(Thing.category_id == tag_id, Thing.url.in_(tagged)))

        if collection_id is not None:
            members = select(collection_thing.c.thing_id).where(
                collection_thing.c.collection_id == collection_id
            )
            stmt = stmt.where(Thing.url.in_(members))

        stmt = stmt.order_by(Thing.name, Thing.url)

        with self.db.get_session() as session:
            for thing in session.scalars(stmt):
                yield ThingView.from_model(thing)

    @handle_db_errors
    @log_database_operation("query_get_thing")
    def get_thing(self, url: str) -> ThingView:
        """
        Resolve a thing by url.

        Raises:
            NotFound: If no thing has this url
        """
        with self.db.get_session() as session:
            return ThingView.from_model(self._require_thing(session, url))

    @handle_db_errors
    @log_database_operation("query_tags_for_thing")
    def list_tags_for_thing(self, url: str) -> List[TagView]:
        """
        Classifiers of a thing.

        Returns:
            The primary category first, then secondary tags ordered by id

        Raises:
            NotFound: If no thing has this url
        """
        with self.db.get_session() as session:
            thing = self._require_thing(session, url)
            secondary = session.scalars(
                select(Tag)
                .join(thing_tag, thing_tag.c.tag_id == Tag.id)
                .where(thing_tag.c.thing_id == thing.url)
                .order_by(Tag.id)
            ).all()

            views = [TagView.from_model(thing.category)]
            views.extend(
                TagView.from_model(tag)
                for tag in secondary
                if tag.id != thing.category_id
            )
            return views

    @handle_db_errors
    @log_database_operation("query_collections_for_thing")
    def list_collections_for_thing(self, url: str) -> List[CollectionView]:
        """
        Collections a thing belongs to, ordered by id.

        Raises:
            NotFound: If no thing has this url
        """
        with self.db.get_session() as session:
            thing = self._require_thing(session, url)
            collections = session.scalars(
                select(Collection)
                .join(
                    collection_thing,
                    collection_thing.c.collection_id == Collection.id,
                )
                .where(collection_thing.c.thing_id == thing.url)
                .order_by(Collection.id)
            ).all()
            return [CollectionView.from_model(c) for c in collections]

    # -------------------------------------------------------------------------
    # Tags and Collections
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("query_get_tag")
    def get_tag(self, tag_id: str) -> TagView:
        """
        Resolve tag metadata.

        Raises:
            NotFound: If the tag does not exist
        """
        with self.db.get_session() as session:
            tag = session.get(Tag, tag_id)
            if tag is None:
                raise NotFound(f"Tag not found: '{tag_id}'")
            return TagView.from_model(tag)

    @handle_db_errors
    @log_database_operation("query_list_tags")
    def list_tags(self) -> List[TagView]:
        """All tags ordered by id."""
        with self.db.get_session() as session:
            tags = session.scalars(select(Tag).order_by(Tag.id)).all()
            return [TagView.from_model(tag) for tag in tags]

    @handle_db_errors
    @log_database_operation("query_get_collection")
    def get_collection(self, collection_id: str) -> CollectionView:
        """
        Resolve collection metadata.

        Raises:
            NotFound: If the collection does not exist
        """
        with self.db.get_session() as session:
            collection = session.get(Collection, collection_id)
            if collection is None:
                raise NotFound(f"Collection not found: '{collection_id}'")
            return CollectionView.from_model(collection)

    @handle_db_errors
    @log_database_operation("query_list_collections")
    def list_collections(self) -> List[CollectionView]:
        with self.db.get_session() as session:
            collections = session.scalars(
                select(Collection).order_by(Collection.id)
            ).all()
            return [CollectionView.from_model(c) for c in collections]

    # -------------------------------------------------------------------------
    # Packages
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("query_get_package")
    def get_package(self, package_id: str) -> PackageView:
        """
        Resolve a stored descriptor.

        Raises:
            NotFound: If no package has this id
        """
        with self.db.get_session() as session:
            package = session.get(Package, package_id)
            if package is None:
                raise NotFound(f"Package not found: '{package_id}'")
            return PackageView.from_model(package)

    @handle_db_errors
    @log_database_operation("query_list_packages")
    def list_packages(self) -> List[Tuple[str, str]]:
        """(id, hash) of every stored package, ordered by id."""
        with self.db.get_session() as session:
            rows = session.execute(
                select(Package.id, Package.hash).order_by(Package.id)
            ).all()
            return [(row.id, row.hash) for row in rows]

    # ---- Helpers ----
    @staticmethod
    def _require_thing(session: Session, url: str) -> Thing:
        thing = session.get(Thing, url)
        if thing is None:
            raise NotFound(f"Thing not found: '{url}'")
        return thing
