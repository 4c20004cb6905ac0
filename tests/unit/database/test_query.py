"""
test_query.py
-------------
Tests for the read-only CatalogQuery layer.
"""
import types
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from curator.core.exceptions import DatabaseError, NotFound
from curator.database.manager import CatalogDB
from curator.database.models import MISCELLANEOUS_TAG_ID
from curator.database.query import CatalogQuery, CollectionView, TagView, ThingView


@pytest.fixture
def catalog(test_db):
    """
    Small catalog written directly through the managers.

    tools: ripgrep (category), jq (secondary tag)
    cli collection: ripgrep, jq
    """
    with test_db.session_scope():
        test_db.tags.upsert({"id": "tools", "name": "Tools", "summary": "Do work"})
        test_db.tags.upsert({"id": "json"})
        test_db.collections.upsert({"id": "cli", "summary": "CLI things"})
        test_db.collections.upsert({"id": "empty", "summary": "Nothing yet"})

        test_db.things.upsert(
            {"url": "https://rg", "name": "ripgrep", "category_id": "tools"}
        )
        test_db.things.upsert({"url": "https://jq", "name": "jq", "category_id": "json"})
        test_db.things.upsert({"url": "https://odd", "name": "Oddity"})

        test_db.things.add_tag("https://jq", "tools")
        test_db.collections.add_thing("cli", "https://rg")
        test_db.collections.add_thing("cli", "https://jq")
    return test_db


class TestListThings:
    """Test CatalogQuery.list_things()."""

    def test_returns_lazy_generator(self, query, catalog):
        assert isinstance(query.list_things(), types.GeneratorType)

    def test_unfiltered_ordered_by_name(self, query, catalog):
        assert [t.name for t in query.list_things()] == ["Oddity", "jq", "ripgrep"]

    def test_tag_filter_matches_category_and_secondary(self, query, catalog):
        assert {t.url for t in query.list_things(tag_id="tools")} == {
            "https://rg",
            "https://jq",
        }

    def test_collection_filter(self, query, catalog):
        assert [t.name for t in query.list_things(collection_id="cli")] == ["jq", "ripgrep"]

    def test_filters_combine(self, query, catalog):
        things = list(query.list_things(tag_id="json", collection_id="cli"))
        assert [t.url for t in things] == ["https://jq"]

    def test_fallback_category(self, query, catalog):
        things = list(query.list_things(tag_id=MISCELLANEOUS_TAG_ID))
        assert [t.url for t in things] == ["https://odd"]

    def test_unknown_ids_yield_nothing(self, query, catalog):
        assert list(query.list_things(tag_id="ghost")) == []
        assert list(query.list_things(collection_id="empty")) == []

    def test_restartable(self, query, catalog):
        first = list(query.list_things(tag_id="tools"))
        second = list(query.list_things(tag_id="tools"))
        assert first == second

    def test_sees_new_rows_on_each_call(self, query, catalog):
        before = list(query.list_things())
        with catalog.session_scope():
            catalog.things.upsert({"url": "https://new", "name": "New"})
        after = list(query.list_things())
        assert len(after) == len(before) + 1

    def test_views_are_detached(self, query, catalog):
        thing = next(query.list_things(tag_id="tools"))
        assert isinstance(thing, ThingView)
        with pytest.raises(AttributeError):
            thing.name = "changed"

    def test_store_errors_translated_while_iterating(self, query, monkeypatch):
        session = MagicMock()
        session.__enter__.return_value = session
        session.scalars.side_effect = OperationalError(
            "SELECT", {}, Exception("disk I/O error")
        )
        monkeypatch.setattr(query.db, "get_session", lambda: session)

        with pytest.raises(DatabaseError, match="Database operation failed"):
            list(query.list_things())


class TestGetters:
    """Test get_tag / get_collection / get_thing."""

    def test_get_tag(self, query, catalog):
        assert query.get_tag("tools") == TagView(
            id="tools", name="Tools", summary="Do work", icon=None
        )

    def test_get_tag_missing(self, query, catalog):
        with pytest.raises(NotFound, match="ghost"):
            query.get_tag("ghost")

    def test_get_collection(self, query, catalog):
        assert query.get_collection("cli") == CollectionView(
            id="cli", summary="CLI things", url=None
        )

    def test_get_collection_missing(self, query, catalog):
        with pytest.raises(NotFound):
            query.get_collection("G1")

    def test_get_thing(self, query, catalog):
        thing = query.get_thing("https://rg")
        assert thing.name == "ripgrep"
        assert thing.category_id == "tools"

    def test_get_thing_missing(self, query, catalog):
        with pytest.raises(NotFound):
            query.get_thing("https://ghost")

    def test_list_tags_and_collections(self, query, catalog):
        assert [t.id for t in query.list_tags()] == ["json", MISCELLANEOUS_TAG_ID, "tools"]
        assert [c.id for c in query.list_collections()] == ["cli", "empty"]


class TestThingRelations:
    """Test list_tags_for_thing / list_collections_for_thing."""

    def test_tags_category_first(self, query, catalog):
        assert [t.id for t in query.list_tags_for_thing("https://jq")] == ["json", "tools"]

    def test_tags_without_secondary(self, query, catalog):
        assert [t.id for t in query.list_tags_for_thing("https://odd")] == [
            MISCELLANEOUS_TAG_ID
        ]

    def test_secondary_equal_to_category_listed_once(self, query, catalog):
        with catalog.session_scope():
            catalog.things.add_tag("https://rg", "tools")
        assert [t.id for t in query.list_tags_for_thing("https://rg")] == ["tools"]

    def test_collections(self, query, catalog):
        assert [c.id for c in query.list_collections_for_thing("https://rg")] == ["cli"]
        assert query.list_collections_for_thing("https://odd") == []

    def test_unknown_thing_raises(self, query, catalog):
        with pytest.raises(NotFound):
            query.list_tags_for_thing("https://ghost")
        with pytest.raises(NotFound):
            query.list_collections_for_thing("https://ghost")


class TestPackages:
    """Test get_package / list_packages."""

    def test_get_package(self, query, ingester, minimal_body):
        result = ingester.ingest(minimal_body)
        package = query.get_package("pkg1")

        assert package.hash == result.hash
        assert package.body == minimal_body
        assert query.list_packages() == [("pkg1", result.hash)]

    def test_get_package_missing(self, query, test_db):
        with pytest.raises(NotFound):
            query.get_package("ghost")


@pytest.fixture(params=["memory", "file"])
def isolated_db(request, tmp_path):
    """Catalog opened both as an in-memory catalog and as a file."""
    path = ":memory:" if request.param == "memory" else tmp_path / "isolated.db"
    db = CatalogDB(path)
    yield db
    db.close()


class TestReadIsolation:
    """Readers only see committed catalog state."""

    def test_reader_inside_open_scope_sees_nothing(self, isolated_db):
        reader = CatalogQuery(isolated_db)

        with isolated_db.session_scope():
            isolated_db.things.upsert({"url": "https://h", "name": "H"})
            assert list(reader.list_things()) == []
            with pytest.raises(NotFound):
                reader.get_thing("https://h")

        assert [t.url for t in reader.list_things()] == ["https://h"]

    def test_writer_rows_survive_reader_closing(self, isolated_db):
        reader = CatalogQuery(isolated_db)

        with isolated_db.session_scope():
            isolated_db.tags.upsert({"id": "a"})
            isolated_db.things.upsert({"url": "https://a", "name": "A", "category_id": "a"})
            assert reader.get_tag(MISCELLANEOUS_TAG_ID).id == MISCELLANEOUS_TAG_ID
            isolated_db.things.upsert({"url": "https://b", "name": "B"})

        assert [t.url for t in reader.list_things()] == ["https://a", "https://b"]
        assert reader.get_tag("a").id == "a"

    def test_rolled_back_scope_leaves_no_rows(self, isolated_db):
        reader = CatalogQuery(isolated_db)

        with pytest.raises(RuntimeError):
            with isolated_db.session_scope():
                isolated_db.things.upsert({"url": "https://a", "name": "A"})
                list(reader.list_things())
                raise RuntimeError("abort")

        assert list(reader.list_things()) == []
