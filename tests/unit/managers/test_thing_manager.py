"""
test_thing_manager.py
---------------------
Unit tests for ThingManager: upsert policy, category references,
secondary tags and referentially checked deletes.
"""
import pytest

from curator.core.exceptions import (
    DuplicateMembership,
    ForeignKeyViolation,
    NotFound,
    ValidationError,
)
from curator.database.models import MISCELLANEOUS_TAG_ID


@pytest.fixture
def tools(tag_manager):
    return tag_manager.upsert({"id": "tools", "name": "Tools"})


class TestThingManagerUpsert:
    """Test ThingManager.upsert()."""

    def test_creates_thing(self, thing_manager, tools):
        thing = thing_manager.upsert(
            {"url": "https://x", "name": "X", "summary": "An x", "category_id": "tools"}
        )

        assert thing.url == "https://x"
        assert thing.category_id == "tools"
        assert thing.category.id == "tools"
        assert thing_manager.exists("https://x")

    def test_category_defaults_to_fallback(self, thing_manager):
        thing = thing_manager.upsert({"url": "https://x", "name": "X"})
        assert thing.category_id == MISCELLANEOUS_TAG_ID

    def test_empty_summary_stored_as_null(self, thing_manager):
        thing = thing_manager.upsert({"url": "https://x", "name": "X", "summary": ""})
        assert thing.summary is None

    def test_unknown_category_raises(self, thing_manager):
        with pytest.raises(ForeignKeyViolation, match="Unknown category 'ghost'"):
            thing_manager.upsert({"url": "https://x", "name": "X", "category_id": "ghost"})
        assert thing_manager.exists("https://x") is False

    def test_missing_name_raises(self, thing_manager):
        with pytest.raises(ValidationError):
            thing_manager.upsert({"url": "https://x"})

    def test_overwrite_replaces_fields(self, thing_manager, tools):
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing = thing_manager.upsert(
            {"url": "https://x", "name": "X2", "category_id": "tools"}, overwrite=True
        )

        assert thing.name == "X2"
        assert thing.category_id == "tools"

    def test_no_overwrite_keeps_stored_row(self, thing_manager, tools):
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing = thing_manager.upsert(
            {"url": "https://x", "name": "X2", "category_id": "tools"}, overwrite=False
        )

        assert thing.name == "X"
        assert thing.category_id == MISCELLANEOUS_TAG_ID

    def test_get_all_filters_by_category(self, thing_manager, tools):
        thing_manager.upsert({"url": "https://b", "name": "B", "category_id": "tools"})
        thing_manager.upsert({"url": "https://a", "name": "A", "category_id": "tools"})
        thing_manager.upsert({"url": "https://c", "name": "C"})

        assert [t.name for t in thing_manager.get_all("tools")] == ["A", "B"]
        assert len(thing_manager.get_all()) == 3


class TestThingManagerTags:
    """Test secondary tags."""

    def test_add_tag(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        thing_manager.upsert({"url": "https://x", "name": "X"})

        assert thing_manager.add_tag("https://x", "cli") is True
        assert [t.id for t in thing_manager.tags_for("https://x")] == ["cli"]

    def test_add_tag_twice_is_ignored(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing_manager.add_tag("https://x", "cli")

        assert thing_manager.add_tag("https://x", "cli") is False
        assert len(thing_manager.tags_for("https://x")) == 1

    def test_add_tag_twice_strict_raises(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing_manager.add_tag("https://x", "cli")

        with pytest.raises(DuplicateMembership):
            thing_manager.add_tag("https://x", "cli", strict=True)

    def test_add_unknown_tag_raises(self, thing_manager):
        thing_manager.upsert({"url": "https://x", "name": "X"})
        with pytest.raises(ForeignKeyViolation):
            thing_manager.add_tag("https://x", "ghost")

    def test_tag_unknown_thing_raises(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        with pytest.raises(ForeignKeyViolation):
            thing_manager.add_tag("https://ghost", "cli")

    def test_remove_tag(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing_manager.add_tag("https://x", "cli")

        assert thing_manager.remove_tag("https://x", "cli") is True
        assert thing_manager.remove_tag("https://x", "cli") is False
        assert thing_manager.tags_for("https://x") == []


class TestThingManagerDelete:
    """Test ThingManager.delete()."""

    def test_delete_unreferenced_thing(self, thing_manager):
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing_manager.delete("https://x")
        assert thing_manager.get("https://x") is None

    def test_delete_missing_raises(self, thing_manager):
        with pytest.raises(NotFound):
            thing_manager.delete("https://ghost")

    def test_delete_tagged_thing_raises(self, thing_manager, tag_manager):
        tag_manager.upsert({"id": "cli"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        thing_manager.add_tag("https://x", "cli")

        with pytest.raises(ForeignKeyViolation):
            thing_manager.delete("https://x")

    def test_delete_member_thing_raises(self, thing_manager, collection_manager):
        collection_manager.upsert({"id": "g", "summary": "G"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        collection_manager.add_thing("g", "https://x")

        assert thing_manager.reference_count("https://x") == 1
        with pytest.raises(ForeignKeyViolation):
            thing_manager.delete("https://x")

    def test_delete_after_removing_links(self, thing_manager, collection_manager):
        collection_manager.upsert({"id": "g", "summary": "G"})
        thing_manager.upsert({"url": "https://x", "name": "X"})
        collection_manager.add_thing("g", "https://x")
        collection_manager.remove_thing("g", "https://x")

        thing_manager.delete("https://x")
        assert thing_manager.exists("https://x") is False
