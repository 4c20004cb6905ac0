#!/usr/bin/env python3
"""
descriptor.py
--------------------
Decomposition of a package body into catalog rows.

A descriptor declares optional tag and collection definitions and a list
of things. Each thing names its primary category, secondary tags and the
collections it belongs to:

    id: awesome-cli
    tags:
      - id: tools
        name: Tools
    collections:
      - id: awesome-cli
        summary: Command line things
    things:
      - url: https://example.org
        name: Example
        summary: An example tool
        category: tools
        tags: [cli]
        collections: [awesome-cli]

Things may use "id" instead of "url" for their location. Missing
categories fall back to the "miscellaneous" tag.

Descriptor files are YAML or JSON (JSON is a subset of YAML, so both go
through yaml.safe_load).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

# --- Third-party imports ---
import yaml

# --- Local imports ---
from curator.core.exceptions import MalformedDescriptor, ValidationError
from curator.core.validators import DataValidator
from curator.database.models import MISCELLANEOUS_TAG_ID


@dataclass(frozen=True)
class TagSpec:
    """A tag definition carried by a descriptor."""

    id: str
    name: Optional[str] = None
    summary: Optional[str] = None

    def to_metadata(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "summary": self.summary}


@dataclass(frozen=True)
class CollectionSpec:
    """A collection definition carried by a descriptor."""

    id: str
    summary: str
    url: Optional[str] = None

    def to_metadata(self) -> Dict[str, Any]:
        return {"id": self.id, "summary": self.summary, "url": self.url}


@dataclass(frozen=True)
class ThingSpec:
    """A thing declared by a descriptor, with its relationships."""

    url: str
    name: str
    summary: Optional[str] = None
    category: str = MISCELLANEOUS_TAG_ID
    tags: Tuple[str, ...] = ()
    collections: Tuple[str, ...] = ()

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "name": self.name,
            "summary": self.summary,
            "category_id": self.category,
        }


@dataclass
class Descriptor:
    """
    Parsed form of a package body.

    Attributes:
        package_id: Identifier of the package
        tags: Tag definitions
        collections: Collection definitions
        things: Declared things, in body order
    """

    package_id: str
    tags: List[TagSpec] = field(default_factory=list)
    collections: List[CollectionSpec] = field(default_factory=list)
    things: List[ThingSpec] = field(default_factory=list)

    @property
    def thing_urls(self) -> Set[str]:
        return {thing.url for thing in self.things}

    @property
    def thing_tags(self) -> Set[Tuple[str, str]]:
        """(url, tag_id) pairs declared as secondary tags."""
        return {(t.url, tag) for t in self.things for tag in t.tags}

    @property
    def memberships(self) -> Set[Tuple[str, str]]:
        """(collection_id, url) pairs declared by things."""
        return {(c, t.url) for t in self.things for c in t.collections}


def _section(body: Mapping[str, Any], key: str) -> List[Any]:
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedDescriptor(
            f"Descriptor section '{key}' must be a list, got {type(value).__name__}"
        )
    return value


def _entry(item: Any, section: str, index: int) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise MalformedDescriptor(
            f"Entry {index} of '{section}' must be a mapping, got {type(item).__name__}"
        )
    return item


def _required(item: Mapping[str, Any], keys: Tuple[str, ...], where: str) -> str:
    for key in keys:
        value = DataValidator.normalize_string(item.get(key))
        if value:
            return value
    raise MalformedDescriptor(f"{where}: required field '{keys[0]}' missing or empty")


def _string_list(value: Any, where: str) -> Tuple[str, ...]:
    try:
        return tuple(DataValidator.normalize_list(value))
    except ValidationError as e:
        raise MalformedDescriptor(f"{where}: {e}") from e


def parse_descriptor(body: Mapping[str, Any], package_id: str) -> Descriptor:
    """
    Decompose a descriptor body into tag, collection and thing specs.

    Args:
        body: Descriptor mapping (already identified)
        package_id: Id extracted from the body

    Returns:
        Descriptor

    Raises:
        MalformedDescriptor: If a section or entry has the wrong shape or
            lacks a required field
    """
    descriptor = Descriptor(package_id=package_id)

    for index, raw in enumerate(_section(body, "tags")):
        item = _entry(raw, "tags", index)
        descriptor.tags.append(
            TagSpec(
                id=_required(item, ("id",), f"tags[{index}]"),
                name=DataValidator.normalize_string(item.get("name")),
                summary=DataValidator.normalize_string(item.get("summary")),
            )
        )

    for index, raw in enumerate(_section(body, "collections")):
        item = _entry(raw, "collections", index)
        descriptor.collections.append(
            CollectionSpec(
                id=_required(item, ("id",), f"collections[{index}]"),
                summary=_required(item, ("summary",), f"collections[{index}]"),
                url=DataValidator.normalize_string(item.get("url")),
            )
        )

    seen: Dict[str, int] = {}
    for index, raw in enumerate(_section(body, "things")):
        where = f"things[{index}]"
        item = _entry(raw, "things", index)
        url = _required(item, ("url", "id"), where)
        if url in seen:
            raise MalformedDescriptor(
                f"{where}: url '{url}' already declared by things[{seen[url]}]"
            )
        seen[url] = index

        descriptor.things.append(
            ThingSpec(
                url=url,
                name=_required(item, ("name",), where),
                summary=DataValidator.normalize_string(item.get("summary")),
                category=(
                    DataValidator.normalize_string(item.get("category"))
                    or MISCELLANEOUS_TAG_ID
                ),
                tags=_string_list(item.get("tags"), f"{where}.tags"),
                collections=_string_list(item.get("collections"), f"{where}.collections"),
            )
        )

    return descriptor


def load_descriptor_file(path: Path) -> Dict[str, Any]:
    """
    Read a YAML or JSON descriptor from disk.

    Raises:
        MalformedDescriptor: If the file cannot be read or parsed, or
            does not hold a mapping
    """
    path = Path(path)
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedDescriptor(f"Cannot read descriptor {path}: {e}") from e
    except yaml.YAMLError as e:
        raise MalformedDescriptor(f"Cannot parse descriptor {path}: {e}") from e

    if not isinstance(content, dict):
        raise MalformedDescriptor(
            f"Descriptor {path} must hold a mapping, got {type(content).__name__}"
        )
    return content
