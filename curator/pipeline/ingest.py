#!/usr/bin/env python3
"""
ingest.py
--------------------
Turn package descriptors into consistent catalog state.

This module provides the PackageIngester class, which stores a descriptor
under its content hash and derives the normalized catalog rows (tags,
things, secondary tags, collection memberships) from its body.

Transaction Strategy:
    - Each descriptor is ingested in a single session scope
    - Any failure rolls back every row written for that descriptor
    - Batches report per-descriptor outcomes and never stop on a failure

Change Detection:
    - Unknown id: the package is stored and its rows derived
    - Known id, same hash: nothing is written (idempotent re-ingestion)
    - Known id, new hash: the package is replaced, its rows re-derived,
      and rows only the previous body declared are dropped unless another
      stored package still declares them

Usage:
    from curator.pipeline.ingest import PackageIngester

    ingester = PackageIngester(db)
    result = ingester.ingest(body)
    report = ingester.ingest_paths(sorted(PACKAGES_DIR.glob("*.yaml")))
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

# --- Local imports ---
from curator.core.exceptions import CatalogError, IngestionError
from curator.core.logging_manager import CuratorLogger, safe_logger
from curator.database.manager import CatalogDB
from curator.database.models import ChangeKind, ChangeOperation
from .descriptor import Descriptor, ThingSpec, load_descriptor_file, parse_descriptor
from .models import IngestReport, IngestResult, IngestStatus
from curator.core.package_hash import PackageIdentity, identify, normalize_body


class PackageIngester:
    """
    Ingest package descriptors into a catalog.

    Attributes:
        db: Target catalog
        logger: Logger for operation tracking

    The package id is read from the field the catalog is configured with
    (CatalogDB.id_field).
    """

    def __init__(
        self,
        db: CatalogDB,
        logger: Optional[CuratorLogger] = None,
    ) -> None:
        self.db = db
        self.logger = logger if logger is not None else db.logger
        self._current_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def ingest(self, body: Dict[str, Any], source: Optional[str] = None) -> IngestResult:
        """
        Ingest one descriptor atomically.

        Args:
            body: Descriptor mapping
            source: Where the body came from, for reporting

        Returns:
            IngestResult with status created, updated or unchanged

        Raises:
            MalformedDescriptor: If the body cannot be identified or parsed
            ForeignKeyViolation: If the body references a collection that
                neither exists nor is declared
            UniqueConstraintViolation, DatabaseError: On store failures
            IngestionError: On failures outside the catalog hierarchy

            Every raised error carries package_id and url; nothing from the
            descriptor is committed.
        """
        identity: Optional[PackageIdentity] = None
        self._current_url = None

        try:
            # The hash is taken over the canonical form that gets stored
            stored_body = normalize_body(body)
            identity = identify(stored_body, self.db.id_field)
            descriptor = parse_descriptor(stored_body, identity.id)

            with self.db.session_scope():
                result = self._apply(identity, stored_body, descriptor)

        except CatalogError as e:
            e.package_id = e.package_id or (identity.id if identity else None)
            e.url = e.url or self._current_url
            self._log_failure(e, e.package_id, e.url, source)
            raise
        except Exception as e:
            package_id = identity.id if identity else None
            self._log_failure(e, package_id, self._current_url, source)
            raise IngestionError(
                f"Ingestion of package '{package_id or '?'}' failed: {e}",
                package_id=package_id,
                url=self._current_url,
            ) from e

        result.source = source
        safe_logger(self.logger).log_operation(
            "ingest_package",
            {
                "package_id": result.package_id,
                "status": result.status.value,
                "things_written": result.things_written,
                "things_removed": result.things_removed,
            },
        )
        return result

    def ingest_many(
        self,
        bodies: Iterable[Dict[str, Any]],
        sources: Optional[Iterable[str]] = None,
    ) -> IngestReport:
        """
        Ingest descriptors one by one, recording every outcome.

        A failed descriptor is rolled back and reported; the batch goes on.

        Args:
            bodies: Descriptor mappings
            sources: Optional labels, parallel to bodies

        Returns:
            IngestReport in input order
        """
        report = IngestReport()
        labels = iter(sources) if sources is not None else None

        for index, body in enumerate(bodies):
            source = next(labels, None) if labels is not None else f"#{index}"
            report.add(self._ingest_reporting(lambda body=body: body, source))

        safe_logger(self.logger).log_info(report.summary())
        return report

    def ingest_file(self, path: Path) -> IngestResult:
        """
        Load a YAML/JSON descriptor file and ingest it.

        Raises:
            MalformedDescriptor: If the file cannot be read or parsed
            CatalogError: As raised by ingest()
        """
        path = Path(path)
        try:
            body = load_descriptor_file(path)
        except CatalogError as e:
            self._log_failure(e, None, None, str(path))
            raise
        return self.ingest(body, source=str(path))

    def ingest_paths(self, paths: Iterable[Path]) -> IngestReport:
        """
        Ingest descriptor files, recording every outcome.

        Args:
            paths: Descriptor files, processed in the given order

        Returns:
            IngestReport in input order
        """
        report = IngestReport()
        for path in paths:
            path = Path(path)
            report.add(
                self._ingest_reporting(
                    lambda path=path: load_descriptor_file(path), str(path)
                )
            )

        safe_logger(self.logger).log_info(report.summary())
        return report

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _log_failure(
        self,
        error: Exception,
        package_id: Optional[str],
        url: Optional[str],
        source: Optional[str],
    ) -> None:
        safe_logger(self.logger).log_error(
            error,
            {
                "operation": "ingest_package",
                "package_id": package_id,
                "url": url,
                "source": source,
            },
        )

    def _ingest_reporting(
        self, load: Callable[[], Dict[str, Any]], source: Optional[str]
    ) -> IngestResult:
        """Run one ingestion, converting failures into a failed result."""
        try:
            body = load()
        except CatalogError as e:
            self._log_failure(e, None, None, source)
            return self._failed(e, source)

        try:
            return self.ingest(body, source=source)
        except CatalogError as e:
            return self._failed(e, source)

    @staticmethod
    def _failed(error: CatalogError, source: Optional[str]) -> IngestResult:
        return IngestResult(
            status=IngestStatus.FAILED,
            package_id=error.package_id,
            source=source,
            error=str(error),
            error_type=type(error).__name__,
            url=error.url,
        )

    def _apply(
        self,
        identity: PackageIdentity,
        body: Dict[str, Any],
        descriptor: Descriptor,
    ) -> IngestResult:
        """Store the package and derive its rows inside the open session scope."""
        db = self.db
        existing = db.packages.get(identity.id)

        if existing is not None and existing.hash == identity.hash:
            return IngestResult(
                status=IngestStatus.UNCHANGED,
                package_id=identity.id,
                hash=identity.hash,
            )

        previous: Optional[Descriptor] = None
        if existing is None:
            db.packages.insert(body, identity.hash, identity.id)
            status = IngestStatus.CREATED
            operation = ChangeOperation.INSERT
        else:
            previous = parse_descriptor(existing.body, identity.id)
            db.packages.replace(body, identity.hash, identity.id)
            status = IngestStatus.UPDATED
            operation = ChangeOperation.REPLACE

        db.changelog.record(
            operation, ChangeKind.PACKAGE, identity.id, {"hash": identity.hash}
        )

        written = self._derive(descriptor)
        removed = 0
        if previous is not None:
            removed = self._prune(previous, descriptor)

        self._current_url = None
        return IngestResult(
            status=status,
            package_id=identity.id,
            hash=identity.hash,
            things_written=written,
            things_removed=removed,
        )

    def _derive(self, descriptor: Descriptor) -> int:
        """Upsert every tag, collection, thing and relationship a descriptor declares."""
        db = self.db

        for tag in descriptor.tags:
            if not db.tags.exists(tag.id):
                db.tags.upsert(tag.to_metadata())
                db.changelog.record(ChangeOperation.INSERT, ChangeKind.TAG, tag.id)

        for collection in descriptor.collections:
            if not db.collections.exists(collection.id):
                db.collections.upsert(collection.to_metadata())
                db.changelog.record(
                    ChangeOperation.INSERT, ChangeKind.COLLECTION, collection.id
                )

        for thing in descriptor.things:
            self._current_url = thing.url
            self._derive_thing(thing)

        return len(descriptor.things)

    def _derive_thing(self, spec: ThingSpec) -> None:
        db = self.db

        for tag_id in (spec.category, *spec.tags):
            if not db.tags.exists(tag_id):
                db.tags.upsert({"id": tag_id})
                db.changelog.record(ChangeOperation.INSERT, ChangeKind.TAG, tag_id)

        stored = db.things.get(spec.url)
        before = (
            (stored.name, stored.summary, stored.category_id) if stored else None
        )
        thing = db.things.upsert(spec.to_metadata(), overwrite=True)
        after = (thing.name, thing.summary, thing.category_id)

        if before is None:
            db.changelog.record(ChangeOperation.INSERT, ChangeKind.THING, spec.url)
        elif before != after:
            db.changelog.record(ChangeOperation.REPLACE, ChangeKind.THING, spec.url)

        for tag_id in spec.tags:
            db.things.add_tag(spec.url, tag_id)

        for collection_id in spec.collections:
            db.collections.add_thing(collection_id, spec.url)

    def _declared_elsewhere(
        self, package_id: str
    ) -> Tuple[Set[str], Set[Tuple[str, str]], Set[Tuple[str, str]]]:
        """Things, thing tags and memberships declared by other stored packages."""
        urls: Set[str] = set()
        pairs: Set[Tuple[str, str]] = set()
        memberships: Set[Tuple[str, str]] = set()

        for package in self.db.packages.get_all():
            if package.id == package_id:
                continue
            other = parse_descriptor(package.body, package.id)
            urls |= other.thing_urls
            pairs |= other.thing_tags
            memberships |= other.memberships

        return urls, pairs, memberships

    def _prune(self, previous: Descriptor, current: Descriptor) -> int:
        """
        Drop rows only the previous body of a package declared.

        Things still referenced by rows no package declares (e.g. added by
        hand) are kept.

        Returns:
            Number of things deleted
        """
        db = self.db
        other_urls, other_pairs, other_memberships = self._declared_elsewhere(
            current.package_id
        )

        stale_pairs: List[Tuple[str, str]] = sorted(
            previous.thing_tags - current.thing_tags - other_pairs
        )
        for url, tag_id in stale_pairs:
            db.things.remove_tag(url, tag_id)

        stale_memberships = sorted(
            previous.memberships - current.memberships - other_memberships
        )
        for collection_id, url in stale_memberships:
            db.collections.remove_thing(collection_id, url)

        removed = 0
        for url in sorted(previous.thing_urls - current.thing_urls - other_urls):
            if not db.things.exists(url):
                continue
            if db.things.reference_count(url):
                safe_logger(self.logger).log_warning(
                    "Keeping thing no longer declared by its package",
                    {"package_id": current.package_id, "url": url},
                )
                continue
            db.things.delete(url)
            db.changelog.record(ChangeOperation.DELETE, ChangeKind.THING, url)
            removed += 1

        return removed
