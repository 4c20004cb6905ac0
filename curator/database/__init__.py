#!/usr/bin/env python3
"""
Curator Database Package
------------------------
Catalog store with modular architecture.

This package provides:
- Core database operations (CatalogDB, session scopes, migrations)
- Per-entity managers enforcing the catalog invariants
- Read-only query layer for renderers and exporters
"""

from .manager import CatalogDB
from curator.core.exceptions import (
    DatabaseError,
    DuplicateMembership,
    ForeignKeyViolation,
    NotFound,
    UniqueConstraintViolation,
    ValidationError,
)
from .query import CatalogQuery, CollectionView, PackageView, TagView, ThingView
from .decorators import (
    log_database_operation,
    handle_db_errors,
    validate_metadata,
)

__all__ = [
    # Main manager
    "CatalogDB",
    # Exceptions
    "DatabaseError",
    "DuplicateMembership",
    "ForeignKeyViolation",
    "NotFound",
    "UniqueConstraintViolation",
    "ValidationError",
    # Query layer
    "CatalogQuery",
    "CollectionView",
    "PackageView",
    "TagView",
    "ThingView",
    # Decorators
    "log_database_operation",
    "handle_db_errors",
    "validate_metadata",
]
