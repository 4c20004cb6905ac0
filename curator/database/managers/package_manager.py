#!/usr/bin/env python3
"""
package_manager.py
--------------------
Manages content-addressed Package descriptors.

A package row is keyed by the id derived from its body. The body and its
hash determine identity, so rows are never edited in place: a new body
for an existing id goes through replace(), which supersedes the old row.

Usage:
    pkg_mgr = PackageManager(session, logger)

    identity = identify(body)
    pkg_mgr.insert(body, identity.hash, identity.id)
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from curator.core.exceptions import NotFound, UniqueConstraintViolation
from curator.core.logging_manager import CuratorLogger
from curator.core.package_hash import (
    DEFAULT_ID_FIELD,
    normalize_body,
    verify_identity,
)
from curator.database.decorators import handle_db_errors, log_database_operation
from curator.database.models import Package
from .base_manager import BaseManager


class PackageManager(BaseManager):
    """
    Manages package table operations.

    Attributes:
        id_field: Dotted path of the package id inside a body; insert()
            and replace() refuse an (id, hash) pair the body does not
            derive to
    """

    def __init__(
        self,
        session: Session,
        logger: Optional[CuratorLogger] = None,
        id_field: str = DEFAULT_ID_FIELD,
    ):
        super().__init__(session, logger)
        self.id_field = id_field

    @handle_db_errors
    @log_database_operation("package_exists")
    def exists(self, package_id: str) -> bool:
        """Check if a package exists without raising exceptions."""
        return self._get_by_key(Package, package_id) is not None

    @handle_db_errors
    @log_database_operation("get_package")
    def get(self, package_id: str) -> Optional[Package]:
        """Retrieve a package by id, or None."""
        return self._get_by_key(Package, package_id)

    @handle_db_errors
    @log_database_operation("get_all_packages")
    def get_all(self) -> List[Package]:
        """Retrieve all packages ordered by id."""
        return self._get_all(Package, order_by="id")

    @handle_db_errors
    @log_database_operation("insert_package")
    def insert(self, body: Dict[str, Any], hash: str, package_id: str) -> Package:
        """
        Store a new package.

        Re-inserting an identical (id, hash) pair is a no-op.

        Args:
            body: Full descriptor
            hash: Content hash of body
            package_id: Identifier derived from body

        Returns:
            The stored Package

        Raises:
            MalformedDescriptor: If (package_id, hash) is not derived from the
                canonical form of body
            UniqueConstraintViolation: If the id is stored with another hash
        """
        body = normalize_body(body)
        verify_identity(body, hash, package_id, self.id_field)
        package_id = self._require_key(package_id, "id")
        existing = self.session.get(Package, package_id)
        if existing is not None:
            if existing.hash == hash:
                return existing
            raise UniqueConstraintViolation(
                f"Package '{package_id}' already stored with hash "
                f"{existing.hash[:12]}, refusing {hash[:12]}"
            )

        package = Package(id=package_id, hash=hash, body=body)
        self.session.add(package)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(
                f"Stored package: {package_id}", {"hash": hash}
            )

        return package

    @handle_db_errors
    @log_database_operation("replace_package")
    def replace(self, body: Dict[str, Any], hash: str, package_id: str) -> Package:
        """
        Supersede the stored body of an existing package.

        Args:
            body: New descriptor
            hash: Content hash of the new body
            package_id: Identifier derived from body

        Returns:
            The updated Package

        Raises:
            MalformedDescriptor: If (package_id, hash) is not derived from the
                canonical form of body
            NotFound: If no package has this id
        """
        body = normalize_body(body)
        verify_identity(body, hash, package_id, self.id_field)
        package = self._get_by_key(Package, package_id)
        if package is None:
            raise NotFound(f"Package not found: '{package_id}'")

        previous = package.hash
        package.body = body
        package.hash = hash
        self.session.flush()

        if self.logger:
            self.logger.log_debug(
                f"Replaced package: {package_id}",
                {"previous_hash": previous, "hash": hash},
            )

        return package

    @handle_db_errors
    @log_database_operation("delete_package")
    def delete(self, package_id: str) -> None:
        """
        Delete a package row.

        Derived catalog rows are left in place.

        Raises:
            NotFound: If no package has this id
        """
        package = self._get_by_key(Package, package_id)
        if package is None:
            raise NotFound(f"Package not found: '{package_id}'")

        self.session.delete(package)
        self.session.flush()
