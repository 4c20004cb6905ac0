#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators for catalog operations.

    - log_database_operation: traces the entity an operation targets,
      its duration, and failures with package_id/url attached
    - validate_metadata: required-field checks before an upsert
    - handle_db_errors: translates SQLAlchemy errors into the catalog
      hierarchy, also for generator functions
"""
import inspect
import time
from functools import wraps
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from curator.core.exceptions import (
    CatalogError,
    DatabaseError,
    ForeignKeyViolation,
    UniqueConstraintViolation,
)
from curator.core.logging_manager import safe_logger
from curator.core.validators import DataValidator

# Keyword arguments naming the entity an operation works on, by priority
TARGET_KEYWORDS = ("package_id", "url", "tag_id", "collection_id", "thing_id")


def _operation_target(args: tuple, kwargs: Dict[str, Any]) -> Optional[str]:
    """Key of the tag, thing, collection or package an operation targets."""
    for keyword in TARGET_KEYWORDS:
        if isinstance(kwargs.get(keyword), str):
            return kwargs[keyword]
    if not args:
        return None
    first = args[0]
    if isinstance(first, str):
        return first
    if isinstance(first, dict):
        key = first.get("id", first.get("url"))
        return key if isinstance(key, str) else None
    return None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def log_database_operation(operation_name: str):
    """
    Decorator tracing a catalog operation.

    The entity key the operation targets (a tag id, url, collection id or
    package id) is logged at debug level on entry and with the elapsed
    time on completion. Failures go to the error log with package_id and
    url filled from the error, falling back to the call's own arguments.

    Args:
        operation_name: Name the operation is logged under

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            logger = safe_logger(getattr(self, "logger", None))
            target = _operation_target(args, kwargs)
            started = time.perf_counter()

            logger.log_debug(
                f"{operation_name} started",
                {"manager": type(self).__name__, "target": target},
            )

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "target": target,
                        "package_id": getattr(e, "package_id", None)
                        or kwargs.get("package_id"),
                        "url": getattr(e, "url", None) or kwargs.get("url"),
                        "elapsed_ms": _elapsed_ms(started),
                    },
                )
                raise

            logger.log_operation(
                operation_name,
                {"target": target, "elapsed_ms": _elapsed_ms(started)},
            )
            return result

        return wrapper

    return decorator


def validate_metadata(required_fields: List[str]):
    """
    Decorator to validate metadata dictionaries before processing.

    The metadata dictionary is the first positional argument after self,
    or the ``metadata`` keyword.

    Args:
        required_fields: List of required field names

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            metadata = args[0] if args else kwargs.get("metadata", {})

            DataValidator.validate_required_fields(metadata, required_fields)

            return function(self, *args, **kwargs)

        return wrapper

    return decorator


def _translate(error: SQLAlchemyError) -> CatalogError:
    """Map a SQLAlchemy error onto the catalog hierarchy."""
    if isinstance(error, IntegrityError):
        orig = error.orig if error.orig is not None else error
        message = str(orig).lower()
        if "foreign key" in message:
            return ForeignKeyViolation(f"Foreign key violation: {orig}")
        if "unique" in message:
            return UniqueConstraintViolation(f"Unique constraint violation: {orig}")
        return DatabaseError(f"Data integrity violation: {error}")
    return DatabaseError(f"Database operation failed: {error}")


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    Raw SQLAlchemy errors are translated into the catalog hierarchy;
    catalog errors raised by the wrapped function propagate unchanged.
    Generator functions are translated while they are consumed.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """
    if inspect.isgeneratorfunction(function):

        @wraps(function)
        def generator_wrapper(*args, **kwargs):
            try:
                yield from function(*args, **kwargs)
            except SQLAlchemyError as e:
                raise _translate(e) from e

        return generator_wrapper

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except SQLAlchemyError as e:
            raise _translate(e) from e

    return wrapper
