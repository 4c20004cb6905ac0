"""
Database Models Package
------------------------

SQLAlchemy ORM models for the catalog database.

This package provides a modular organization of database models:
- base: Base class and mixins
- associations: Many-to-many join tables
- catalog: Tag, Thing, Collection
- package: Package, ChangeRecord

Usage:
    from curator.database.models import Thing, Tag, Collection
"""
# Base classes
from .base import Base, TimestampMixin

# Association tables
from .associations import collection_thing, thing_tag

# Catalog models
from .catalog import MISCELLANEOUS_TAG_ID, Collection, Tag, Thing

# Packages and journal
from .package import ChangeKind, ChangeOperation, ChangeRecord, Package

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Association tables
    "collection_thing",
    "thing_tag",
    # Catalog
    "MISCELLANEOUS_TAG_ID",
    "Tag",
    "Thing",
    "Collection",
    # Packages
    "Package",
    "ChangeRecord",
    "ChangeOperation",
    "ChangeKind",
]
