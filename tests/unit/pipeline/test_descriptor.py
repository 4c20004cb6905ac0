"""
test_descriptor.py
------------------
Unit tests for descriptor parsing and loading.
"""
import json

import pytest

from curator.core.exceptions import MalformedDescriptor
from curator.database.models import MISCELLANEOUS_TAG_ID
from curator.pipeline.descriptor import (
    ThingSpec,
    load_descriptor_file,
    parse_descriptor,
)


class TestParseDescriptor:
    """Test parse_descriptor() decomposition."""

    def test_full_descriptor(self, awesome_body):
        descriptor = parse_descriptor(awesome_body, "awesome-cli")

        assert descriptor.package_id == "awesome-cli"
        assert [t.id for t in descriptor.tags] == ["tools"]
        assert descriptor.collections[0].url == "https://github.com/example/awesome-cli"
        assert [t.url for t in descriptor.things] == [
            "https://ripgrep.example",
            "https://jq.example",
            "https://oddity.example",
        ]

    def test_thing_fields(self, awesome_body):
        ripgrep = parse_descriptor(awesome_body, "awesome-cli").things[0]

        assert ripgrep == ThingSpec(
            url="https://ripgrep.example",
            name="ripgrep",
            summary="Recursive search",
            category="tools",
            tags=("search", "rust"),
            collections=("awesome-cli",),
        )

    def test_scalar_tags_become_tuple(self, awesome_body):
        jq = parse_descriptor(awesome_body, "awesome-cli").things[1]
        assert jq.tags == ("json",)

    def test_missing_category_falls_back(self, awesome_body):
        oddity = parse_descriptor(awesome_body, "awesome-cli").things[2]
        assert oddity.category == MISCELLANEOUS_TAG_ID

    def test_id_alias_for_url(self):
        body = {"id": "pkg", "things": [{"id": "https://x", "name": "X"}]}
        assert parse_descriptor(body, "pkg").things[0].url == "https://x"

    def test_empty_sections(self):
        descriptor = parse_descriptor({"id": "pkg"}, "pkg")
        assert descriptor.things == []
        assert descriptor.tags == []
        assert descriptor.collections == []

    def test_relationship_sets(self, awesome_body):
        descriptor = parse_descriptor(awesome_body, "awesome-cli")

        assert ("https://jq.example", "json") in descriptor.thing_tags
        assert ("awesome-cli", "https://ripgrep.example") in descriptor.memberships
        assert len(descriptor.memberships) == 2
        assert "https://oddity.example" in descriptor.thing_urls

    def test_to_metadata_maps_category(self):
        spec = ThingSpec(url="https://x", name="X", category="tools")
        assert spec.to_metadata()["category_id"] == "tools"


class TestParseDescriptorErrors:
    """Malformed descriptors."""

    def test_section_must_be_list(self):
        with pytest.raises(MalformedDescriptor, match="'things' must be a list"):
            parse_descriptor({"id": "pkg", "things": {"url": "x"}}, "pkg")

    def test_entry_must_be_mapping(self):
        with pytest.raises(MalformedDescriptor, match="must be a mapping"):
            parse_descriptor({"id": "pkg", "things": ["https://x"]}, "pkg")

    def test_thing_requires_url(self):
        with pytest.raises(MalformedDescriptor, match="'url'"):
            parse_descriptor({"id": "pkg", "things": [{"name": "X"}]}, "pkg")

    def test_thing_requires_name(self):
        with pytest.raises(MalformedDescriptor, match="'name'"):
            parse_descriptor({"id": "pkg", "things": [{"url": "https://x"}]}, "pkg")

    def test_collection_requires_summary(self):
        with pytest.raises(MalformedDescriptor, match="collections\\[0\\]"):
            parse_descriptor({"id": "pkg", "collections": [{"id": "g"}]}, "pkg")

    def test_duplicate_url_rejected(self):
        body = {
            "id": "pkg",
            "things": [
                {"url": "https://x", "name": "X"},
                {"url": "https://x", "name": "Again"},
            ],
        }
        with pytest.raises(MalformedDescriptor, match="already declared"):
            parse_descriptor(body, "pkg")

    def test_bad_tag_list(self):
        body = {"id": "pkg", "things": [{"url": "https://x", "name": "X", "tags": 3}]}
        with pytest.raises(MalformedDescriptor, match="tags"):
            parse_descriptor(body, "pkg")


class TestLoadDescriptorFile:
    """Test load_descriptor_file()."""

    def test_yaml(self, write_descriptor, awesome_yaml):
        body = load_descriptor_file(write_descriptor("awesome.yaml", awesome_yaml))
        assert body["id"] == "awesome-cli"
        assert body["things"][0]["tags"] == ["search", "rust"]

    def test_json(self, write_descriptor, minimal_body):
        path = write_descriptor("pkg1.json", json.dumps(minimal_body))
        assert load_descriptor_file(path) == minimal_body

    def test_missing_file(self, tmp_path):
        with pytest.raises(MalformedDescriptor, match="Cannot read"):
            load_descriptor_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, write_descriptor):
        path = write_descriptor("broken.yaml", "id: [unclosed\n")
        with pytest.raises(MalformedDescriptor, match="Cannot parse"):
            load_descriptor_file(path)

    def test_non_mapping_document(self, write_descriptor):
        path = write_descriptor("list.yaml", "- a\n- b\n")
        with pytest.raises(MalformedDescriptor, match="must hold a mapping"):
            load_descriptor_file(path)
