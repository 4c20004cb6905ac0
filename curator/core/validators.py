#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for catalog operations.

Provides the conversion and normalization functions used by the entity
managers and the descriptor parser.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .exceptions import ValidationError


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(data, dict):
            raise ValidationError(
                f"Expected a mapping, got {type(data).__name__}"
            )
        for field in required_fields:
            if field not in data or not data[field]:
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize a string value.

        Strips surrounding whitespace; empty results become None.

        Args:
            value: Value to normalize

        Returns:
            Normalized string or None
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_list(value: Any) -> List[str]:
        """
        Normalize a scalar-or-list value into a list of strings.

        Args:
            value: None, a single string, or an iterable of strings

        Returns:
            List of non-empty normalized strings, order preserved

        Raises:
            ValidationError: If value is neither a string nor a list
        """
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                f"Expected a string or a list, got {type(value).__name__}"
            )
        result = []
        for item in value:
            normalized = DataValidator.normalize_string(item)
            if normalized and normalized not in result:
                result.append(normalized)
        return result
