"""
conftest.py
-----------
Shared pytest fixtures for Curator tests.

Provides fixtures for:
- Catalog database setup and teardown
- Entity managers bound to a live session
- Sample package descriptors
"""
import pytest
from pathlib import Path


# ----- Database Fixtures -----

@pytest.fixture
def test_db_path(tmp_path):
    """Path to a throwaway catalog file."""
    return tmp_path / "catalog.db"


@pytest.fixture
def test_db(test_db_path, tmp_path):
    """
    Create test catalog instance with schema.

    Returns a CatalogDB with the Alembic revision stamped and the
    fallback tag seeded. The engine is disposed after the test.
    """
    from curator.database.manager import CatalogDB

    db = CatalogDB(db_path=test_db_path, log_dir=tmp_path / "logs")

    yield db

    db.close()
    if db.logger is not None:
        db.logger.close()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    The session belongs to a CatalogDB session scope, so db.tags,
    db.things, ... are usable while the test runs.
    """
    with test_db.session_scope() as session:
        yield session


@pytest.fixture
def tag_manager(db_session):
    """Create TagManager instance for testing."""
    from curator.database.managers import TagManager
    return TagManager(db_session)


@pytest.fixture
def thing_manager(db_session):
    """Create ThingManager instance for testing."""
    from curator.database.managers import ThingManager
    return ThingManager(db_session)


@pytest.fixture
def collection_manager(db_session):
    """Create CollectionManager instance for testing."""
    from curator.database.managers import CollectionManager
    return CollectionManager(db_session)


@pytest.fixture
def package_manager(db_session):
    """Create PackageManager instance for testing."""
    from curator.database.managers import PackageManager
    return PackageManager(db_session)


@pytest.fixture
def changelog_manager(db_session):
    """Create ChangelogManager instance for testing."""
    from curator.database.managers import ChangelogManager
    return ChangelogManager(db_session)


@pytest.fixture
def ingester(test_db):
    """PackageIngester writing to the test catalog."""
    from curator.pipeline.ingest import PackageIngester
    return PackageIngester(test_db)


@pytest.fixture
def query(test_db):
    """Read-only query layer over the test catalog."""
    from curator.database.query import CatalogQuery
    return CatalogQuery(test_db)


# ----- Sample Descriptor Fixtures -----

@pytest.fixture
def minimal_body():
    """Smallest useful descriptor: one thing with a new category."""
    return {
        "id": "pkg1",
        "things": [{"url": "https://x", "name": "X", "category": "tools"}],
    }


@pytest.fixture
def awesome_body():
    """Descriptor using every section."""
    return {
        "id": "awesome-cli",
        "tags": [
            {"id": "tools", "name": "Tools", "summary": "Things that do work"},
        ],
        "collections": [
            {
                "id": "awesome-cli",
                "summary": "Command line things",
                "url": "https://github.com/example/awesome-cli",
            },
        ],
        "things": [
            {
                "url": "https://ripgrep.example",
                "name": "ripgrep",
                "summary": "Recursive search",
                "category": "tools",
                "tags": ["search", "rust"],
                "collections": ["awesome-cli"],
            },
            {
                "url": "https://jq.example",
                "name": "jq",
                "category": "tools",
                "tags": "json",
                "collections": ["awesome-cli"],
            },
            {
                "url": "https://oddity.example",
                "name": "Oddity",
            },
        ],
    }


@pytest.fixture
def awesome_yaml():
    """The awesome-cli descriptor as a YAML document."""
    return """id: awesome-cli
tags:
  - id: tools
    name: Tools
collections:
  - id: awesome-cli
    summary: Command line things
things:
  - url: https://ripgrep.example
    name: ripgrep
    category: tools
    tags: [search, rust]
    collections: [awesome-cli]
  - url: https://oddity.example
    name: Oddity
"""


@pytest.fixture
def write_descriptor(tmp_path):
    """Factory writing descriptor text to a file under tmp_path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / "packages" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
