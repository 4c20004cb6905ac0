#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Rotating file logs for the catalog store and the ingestion pipeline.

Each component writes to its own ``<component>.log``; errors from every
component also land in a shared ``errors.log``. Detail payloads are
JSON-encoded so log lines stay greppable by package id or url.

Layout:
    LOG_DIR/
    ├── database.log   # CatalogDB, managers, query layer
    ├── ingest.log     # PackageIngester when given its own logger
    └── errors.log     # Errors from all components, with tracebacks
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ERROR_LOG_NAME = "errors.log"


def _encode(details: Optional[Dict[str, Any]]) -> str:
    return json.dumps(details, default=str, ensure_ascii=False) if details else ""


class CuratorLogger:
    """
    Component logger with rotation.

    Attributes:
        log_dir: Directory holding the log files
        component_name: Logger namespace and file stem (e.g. 'database')
        main_logger: Receives every level for the component file
        error_logger: Receives errors for the shared errors.log
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "curator",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        console_level: int = logging.WARNING,
    ) -> None:
        """
        Open the component log files.

        Args:
            log_dir: Directory for log files, created if missing
            component_name: Name of the component ('database', 'ingest', ...)
            max_bytes: Size at which a file is rotated (default: 10MB)
            backup_count: Rotated files kept per log (default: 5)
            console_level: Minimum level echoed to stderr
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._fresh_logger("operations", logging.DEBUG)
        self.main_logger.addHandler(
            self._file_handler(self.log_dir / f"{component_name}.log", logging.DEBUG)
        )
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        self.main_logger.addHandler(console)

        self.error_logger = self._fresh_logger("errors", logging.ERROR)
        self.error_logger.addHandler(
            self._file_handler(self.log_dir / ERROR_LOG_NAME, logging.ERROR)
        )

    def _fresh_logger(self, channel: str, level: int) -> logging.Logger:
        """Logger for one channel, with any handlers from a previous instance dropped."""
        logger = logging.getLogger(f"{self.component_name}.{channel}")
        logger.setLevel(level)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        return logger

    def _file_handler(self, path: Path, level: int) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        return handler

    def _emit(
        self, level: int, label: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        payload = _encode(details)
        text = f"{label} - {message}: {payload}" if payload else f"{label} - {message}"
        self.main_logger.log(level, text)

    def close(self) -> None:
        """Flush and detach every handler owned by this logger."""
        for logger in (self.main_logger, self.error_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    # -------------------------------------------------------------------------
    # Logging API
    # -------------------------------------------------------------------------

    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a completed catalog operation (info level)."""
        self._emit(logging.INFO, "OPERATION", operation, details or {})

    def log_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an error with context and traceback to errors.log.

        Diagnostics carried by catalog errors (package_id, url) are added
        to the context when the caller did not supply them.

        Args:
            error: Exception that occurred
            context: Optional context information dictionary
        """
        context = dict(context or {})
        for attribute in ("package_id", "url"):
            value = getattr(error, attribute, None)
            if value is not None and context.get(attribute) is None:
                context[attribute] = value

        self.error_logger.error(f"ERROR - {type(error).__name__}: {error}")
        if context:
            self.error_logger.error(
                "Context: " + ", ".join(f"{k}={v}" for k, v in context.items())
            )
        self.error_logger.error(f"Traceback:\n{traceback.format_exc()}")

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_warning(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self._emit(logging.WARNING, "WARNING", message, details)


class NullLogger:
    """
    Logger with the CuratorLogger interface that discards everything.

    Used through safe_logger() so callers never branch on a missing logger.
    """

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass


_null_logger = NullLogger()


def safe_logger(logger: Optional[CuratorLogger]) -> CuratorLogger:
    """
    Return the provided logger or the shared null logger.

    Usage:
        safe_logger(self.logger).log_info("message")
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]
