#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Curator catalog engine.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in the store and the ingestion pipeline.

Exception Hierarchy:
    Exception (built-in)
    └── CatalogError - Base for every catalog error
        ├── DatabaseError - Base for all store-related errors
        │   ├── ForeignKeyViolation - Reference to a missing tag/thing/collection
        │   ├── UniqueConstraintViolation - Conflicting package content under one id
        │   ├── DuplicateMembership - Duplicate join row in strict mode
        │   └── NotFound - Query for a nonexistent entity
        ├── ValidationError - Data validation failures
        │   └── MalformedDescriptor - Unparseable descriptor or missing field
        └── IngestionError - Non-catalog failure while ingesting a descriptor

Usage:
    from curator.core.exceptions import ForeignKeyViolation

    try:
        ingester.ingest(body)
    except ForeignKeyViolation as e:
        logger.error(f"{e.package_id} / {e.url}: {e}")
"""
from typing import Optional


class CatalogError(Exception):
    """
    Base exception for every error raised by the catalog engine.

    Attributes:
        package_id: Id of the descriptor being ingested when the error
            occurred (None outside ingestion or when it is unknown)
        url: Url of the thing being derived when the error occurred
    """

    def __init__(
        self,
        message: str = "",
        package_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.package_id = package_id
        self.url = url


class DatabaseError(CatalogError):
    """
    Base exception for store-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
    """

    pass


class ForeignKeyViolation(DatabaseError):
    """
    Exception for references to rows that do not exist.

    Raised when:
    - A thing names a category tag that is not in the catalog
    - A membership row references a missing thing, tag, or collection
    - A tag, thing, or collection is deleted while still referenced

    Examples:
        >>> raise ForeignKeyViolation("Unknown category 'tools' for thing 'https://x'")
    """

    pass


class UniqueConstraintViolation(DatabaseError):
    """
    Exception for conflicting package content under a single id.

    Examples:
        >>> raise UniqueConstraintViolation("Package 'pkg1' already stored with another hash")
    """

    pass


class DuplicateMembership(DatabaseError):
    """
    Exception for duplicate join rows when strict insertion is requested.

    By default membership inserts are idempotent and never raise this.
    """

    pass


class NotFound(DatabaseError):
    """
    Exception for lookups of entities that do not exist.

    Examples:
        >>> raise NotFound("Tag not found: 'tools'")
    """

    pass


class ValidationError(CatalogError):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Missing required fields
    - Type mismatches
    - Empty identifiers

    Examples:
        >>> raise ValidationError("Required field 'name' missing or empty")
    """

    pass


class MalformedDescriptor(ValidationError):
    """
    Exception for package descriptors that cannot be processed.

    Raised when:
    - The body is not a mapping
    - The identifying field is absent or not a string
    - The body cannot be serialized to canonical JSON
    - A descriptor file cannot be parsed as YAML/JSON

    Examples:
        >>> raise MalformedDescriptor("Descriptor field 'id' is missing")
    """

    pass


class IngestionError(CatalogError):
    """
    Exception for a descriptor whose ingestion failed below the catalog layer.

    Catalog errors raised during ingestion propagate with their own class;
    this wraps anything else (e.g. a raw driver error) so the caller still
    gets package_id and url. The original exception is kept as __cause__.
    """

    pass
