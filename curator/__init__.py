"""
Curator
=======

A catalog engine for curated "awesome-list" style collections.

Package descriptors (YAML/JSON documents listing things, tags and
collections) are addressed by an id read from their body and a SHA-256
hash of their canonical form. Ingestion stores each descriptor once and
derives the normalized catalog rows from it; a read-only query layer
exposes those rows to renderers and exporters.

Main Components:
    - core: Exceptions, logging, validation, paths, identifier & hash utility
    - database: SQLAlchemy ORM, entity managers, query layer
    - pipeline: Descriptor parsing, ingestion
    - migrations: Alembic environment and revisions

Example Usage:
    >>> from curator import CatalogDB, CatalogQuery, PackageIngester
    >>> db = CatalogDB(":memory:")
    >>> PackageIngester(db).ingest(
    ...     {"id": "pkg1", "things": [{"url": "https://x", "name": "X", "category": "tools"}]}
    ... ).status.value
    'created'
    >>> [t.name for t in CatalogQuery(db).list_things(tag_id="tools")]
    ['X']
"""

__version__ = "0.3.0"

from curator.core.paths import DATA_DIR, DB_PATH, LOG_DIR, PACKAGES_DIR
from curator.database.manager import CatalogDB
from curator.database.query import CatalogQuery
from curator.pipeline.ingest import PackageIngester

__all__ = [
    "CatalogDB",
    "CatalogQuery",
    "PackageIngester",
    "DATA_DIR",
    "DB_PATH",
    "LOG_DIR",
    "PACKAGES_DIR",
]
