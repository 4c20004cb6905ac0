"""
Ingestion pipeline: descriptor identity, parsing and ingestion.

Usage:
    from curator.pipeline import PackageIngester

    report = PackageIngester(db).ingest_paths(paths)
    print(report.summary())
"""
from curator.core.package_hash import PackageIdentity, compute_package_hash, identify
from .descriptor import Descriptor, load_descriptor_file, parse_descriptor
from .ingest import PackageIngester
from .models import IngestReport, IngestResult, IngestStatus

__all__ = [
    "Descriptor",
    "IngestReport",
    "IngestResult",
    "IngestStatus",
    "PackageIdentity",
    "PackageIngester",
    "compute_package_hash",
    "identify",
    "load_descriptor_file",
    "parse_descriptor",
]
