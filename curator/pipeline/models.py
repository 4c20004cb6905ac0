#!/usr/bin/env python3
"""
models.py
---------
Result models for descriptor ingestion.

Models:
    - IngestStatus: Outcome of one descriptor
    - IngestResult: Outcome plus identifiers and error
    - IngestReport: Per-descriptor results of a batch
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class IngestStatus(str, Enum):
    """Outcome of ingesting one descriptor."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class IngestResult:
    """
    Outcome of one descriptor.

    Attributes:
        status: created / updated / unchanged / failed
        package_id: Package id, if it could be extracted
        hash: Content hash, if it could be computed
        source: File path or batch position the body came from
        things_written: Number of things upserted
        things_removed: Number of stale things dropped on update
        error: Error message when status is failed
        error_type: Exception class name of the underlying error
        url: Thing being derived when the failure occurred
    """

    status: IngestStatus
    package_id: Optional[str] = None
    hash: Optional[str] = None
    source: Optional[str] = None
    things_written: int = 0
    things_removed: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not IngestStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "package_id": self.package_id,
            "hash": self.hash,
            "source": self.source,
            "things_written": self.things_written,
            "things_removed": self.things_removed,
            "error": self.error,
            "error_type": self.error_type,
            "url": self.url,
        }


@dataclass
class IngestReport:
    """
    Per-descriptor results of a batch ingestion.

    Attributes:
        results: One IngestResult per descriptor, in input order
        start_time: Batch start timestamp
    """

    results: List[IngestResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)

    def add(self, result: IngestResult) -> None:
        self.results.append(result)

    def count(self, status: IngestStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def failures(self) -> List[IngestResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def duration(self) -> float:
        """Seconds elapsed since start_time."""
        return (datetime.now() - self.start_time).total_seconds()

    def summary(self) -> str:
        """
        Get human-readable summary.

        Returns:
            Formatted summary string
        """
        return (
            f"{len(self.results)} descriptors: "
            f"{self.count(IngestStatus.CREATED)} created, "
            f"{self.count(IngestStatus.UPDATED)} updated, "
            f"{self.count(IngestStatus.UNCHANGED)} unchanged, "
            f"{self.count(IngestStatus.FAILED)} failed"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "created": self.count(IngestStatus.CREATED),
            "updated": self.count(IngestStatus.UPDATED),
            "unchanged": self.count(IngestStatus.UNCHANGED),
            "failed": self.count(IngestStatus.FAILED),
            "duration": self.duration(),
        }
