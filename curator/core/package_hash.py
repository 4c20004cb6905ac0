#!/usr/bin/env python3
"""
package_hash.py
--------------------
Identifier and content hash for package descriptors.

A package is addressed by two values derived from its body:
    - id: read from a designated field of the body ("id" by default)
    - hash: SHA-256 over the canonical JSON serialization of the body

The canonical form sorts keys and uses compact separators, so bodies that
differ only in key order or whitespace share a hash.

Usage:
    from curator.core.package_hash import identify

    identity = identify({"id": "pkg1", "things": []})
    identity.id    # "pkg1"
    identity.hash  # "5d0f..."
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Mapping

# --- Local imports ---
from curator.core.exceptions import MalformedDescriptor

DEFAULT_ID_FIELD = "id"


@dataclass(frozen=True)
class PackageIdentity:
    """The (id, hash) pair addressing a package body."""

    id: str
    hash: str


def extract_package_id(body: Any, id_field: str = DEFAULT_ID_FIELD) -> str:
    """
    Read the package id from a descriptor body.

    Args:
        body: Descriptor mapping
        id_field: Dotted path of the id field (e.g. "id" or "meta.name")

    Returns:
        The id, stripped of surrounding whitespace

    Raises:
        MalformedDescriptor: If body is not a mapping, or the field is
            absent, not a string, or empty
    """
    if not isinstance(body, Mapping):
        raise MalformedDescriptor(
            f"Descriptor must be a mapping, got {type(body).__name__}"
        )

    value: Any = body
    for part in id_field.split("."):
        if not isinstance(value, Mapping) or part not in value:
            raise MalformedDescriptor(f"Descriptor field '{id_field}' is missing")
        value = value[part]

    if not isinstance(value, str):
        raise MalformedDescriptor(
            f"Descriptor field '{id_field}' must be a string, "
            f"got {type(value).__name__}"
        )

    package_id = value.strip()
    if not package_id:
        raise MalformedDescriptor(f"Descriptor field '{id_field}' is empty")
    return package_id


def canonicalize(body: Any) -> bytes:
    """
    Serialize a body to its canonical byte form.

    Raises:
        MalformedDescriptor: If the body holds values JSON cannot represent
    """
    try:
        text = json.dumps(
            body,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise MalformedDescriptor(f"Descriptor is not JSON-serializable: {e}") from e
    except RecursionError as e:
        raise MalformedDescriptor("Descriptor is nested too deeply") from e
    return text.encode("utf-8")


def normalize_body(body: Any) -> Any:
    """
    Return the body as it reads back from its canonical form.

    Non-string keys become strings and key order follows the canonical
    sort, so the result hashes to the same value as what gets stored.

    Raises:
        MalformedDescriptor: If the body cannot be canonicalized
    """
    try:
        return json.loads(canonicalize(body))
    except RecursionError as e:
        raise MalformedDescriptor("Descriptor is nested too deeply") from e


def compute_package_hash(body: Any) -> str:
    """
    Compute SHA256 hash of the canonical body.

    Returns:
        Hex-encoded hash string
    """
    return hashlib.sha256(canonicalize(body)).hexdigest()


def identify(body: Any, id_field: str = DEFAULT_ID_FIELD) -> PackageIdentity:
    """
    Derive the (id, hash) pair of a descriptor body.

    Raises:
        MalformedDescriptor: If the id cannot be extracted or the body
            cannot be canonicalized
    """
    package_id = extract_package_id(body, id_field)
    return PackageIdentity(id=package_id, hash=compute_package_hash(body))


def verify_identity(
    body: Any, hash: str, package_id: str, id_field: str = DEFAULT_ID_FIELD
) -> PackageIdentity:
    """
    Check that (package_id, hash) is what the body derives to.

    Returns:
        The derived identity

    Raises:
        MalformedDescriptor: If the body cannot be identified, or either
            value differs from the derived one
    """
    identity = identify(body, id_field)
    if identity.id != package_id:
        raise MalformedDescriptor(
            f"Package id '{package_id}' does not match body id '{identity.id}'",
            package_id=package_id,
        )
    if identity.hash != hash:
        raise MalformedDescriptor(
            f"Hash {str(hash)[:12]} does not match body hash {identity.hash[:12]}",
            package_id=package_id,
        )
    return identity
