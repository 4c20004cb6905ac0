#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Curator catalog.

Provides the CatalogDB class for interacting with the SQLite catalog.
Handles:
    - Initialization of the database engine and sessionmaker
    - Foreign-key enforcement on every SQLite connection
    - Schema creation and Alembic migrations
    - Idempotent bootstrap of the fallback "miscellaneous" tag
    - Transactional session scopes exposing the entity managers

Notes
==============
- A session scope is the unit of atomicity: it commits on success and
  rolls back everything on any exception
- ":memory:" catalogs live in a private temporary file removed on close,
  so each session has its own connection and readers only ever see
  committed data
- Retry logic for SQLite lock contention lives in the entity managers
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

# --- Third party ---
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from curator.core.exceptions import DatabaseError
from curator.core.logging_manager import CuratorLogger, safe_logger
from curator.core.package_hash import DEFAULT_ID_FIELD
from curator.core.paths import MIGRATIONS_DIR
from .decorators import handle_db_errors, log_database_operation
from .managers import (
    ChangelogManager,
    CollectionManager,
    PackageManager,
    TagManager,
    ThingManager,
)
from .models import MISCELLANEOUS_TAG_ID, Base, Tag

MEMORY_PATH = ":memory:"
SCRATCH_DB_NAME = "catalog.db"

MISCELLANEOUS_TAG = {
    "id": MISCELLANEOUS_TAG_ID,
    "name": "Miscellaneous",
    "summary": "The unclassifiable.",
}


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores foreign keys unless asked on every connection."""
    del connection_record
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ----- Main Database Manager -----
class CatalogDB:
    """
    Main database manager for the catalog.

    Attributes:
        - db_path (Path | None): SQLite file, None for an in-memory catalog
        - id_field (str): Dotted path of the package id inside a body
        - migrations_dir (Path | None): Alembic script location
        - engine (Engine): SQLAlchemy engine instance
        - SessionLocal (sessionmaker): SQLAlchemy session factory

    Usage:
        db = CatalogDB("~/catalogs/awesome.db")
        with db.session_scope():
            db.tags.upsert({"id": "tools"})
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path] = MEMORY_PATH,
        migrations_dir: Optional[Union[str, Path]] = MIGRATIONS_DIR,
        log_dir: Optional[Union[str, Path]] = None,
        logger: Optional[CuratorLogger] = None,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> None:
        """
        Initialize database engine, schema and seed data.

        Args:
            db_path (str | Path): Path to the SQLite file, or ":memory:"
            migrations_dir (str | Path): Alembic directory; None disables
                migrations and builds the schema from the ORM metadata
            log_dir (str | Path): Directory for log files (optional)
            logger (CuratorLogger): Existing logger, takes precedence over log_dir
            id_field (str): Dotted path of the package id inside a body
        """
        self._scratch: Optional[tempfile.TemporaryDirectory] = None
        if str(db_path) == MEMORY_PATH:
            self.db_path: Optional[Path] = None
            self._scratch = tempfile.TemporaryDirectory(prefix="curator-")
        else:
            self.db_path = Path(db_path).expanduser().resolve()
        self.id_field = id_field

        self.migrations_dir = (
            Path(migrations_dir).expanduser().resolve() if migrations_dir else None
        )

        # --- Logging ---
        if logger is not None:
            self.logger: Optional[CuratorLogger] = logger
        elif log_dir:
            self.logger = CuratorLogger(
                Path(log_dir).expanduser().resolve(),
                component_name="database",
            )
        else:
            self.logger = None

        # Modular entity managers (bound inside session_scope)
        self._tag_manager: Optional[TagManager] = None
        self._thing_manager: Optional[ThingManager] = None
        self._collection_manager: Optional[CollectionManager] = None
        self._package_manager: Optional[PackageManager] = None
        self._changelog_manager: Optional[ChangelogManager] = None

        self._setup_engine()
        self.initialize_schema()
        self.bootstrap()

    @property
    def url(self) -> str:
        """SQLAlchemy URL of the catalog."""
        return f"sqlite:///{self.storage_path}"

    @property
    def storage_path(self) -> Path:
        """File backing the catalog, a scratch file for in-memory catalogs."""
        if self.db_path is None:
            return Path(self._scratch.name) / SCRATCH_DB_NAME
        return self.db_path

    @property
    def uses_migrations(self) -> bool:
        """True when an Alembic environment is available."""
        return (
            self.migrations_dir is not None
            and (self.migrations_dir / "env.py").is_file()
        )

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            safe_logger(self.logger).log_operation(
                "database_init_start",
                {"db_path": str(self.db_path or MEMORY_PATH)},
            )

            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine: Engine = create_engine(
                self.url,
                echo=False,
                pool_pre_ping=True,
            )

            event.listen(self.engine, "connect", _enable_foreign_keys)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            safe_logger(self.logger).log_operation(
                "database_init_complete", {"success": True}
            )

        except Exception as e:
            safe_logger(self.logger).log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around operations with logging.

        Also binds the entity managers to the session; they are
        available via properties (db.tags, db.things, ...) until the
        scope exits.

        Usage:
            with db.session_scope() as session:
                db.tags.upsert({"id": "tools"})
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        self._tag_manager = TagManager(session, self.logger)
        self._thing_manager = ThingManager(session, self.logger)
        self._collection_manager = CollectionManager(session, self.logger)
        self._package_manager = PackageManager(session, self.logger, self.id_field)
        self._changelog_manager = ChangelogManager(session, self.logger)

        safe_logger(self.logger).log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            safe_logger(self.logger).log_debug(
                "session_commit", {"session_id": session_id}
            )

        except BaseException as e:
            session.rollback()
            if isinstance(e, Exception):
                safe_logger(self.logger).log_error(
                    e, {"operation": "session_rollback", "session_id": session_id}
                )
            raise
        finally:
            self._tag_manager = None
            self._thing_manager = None
            self._collection_manager = None
            self._package_manager = None
            self._changelog_manager = None

            session.close()
            safe_logger(self.logger).log_debug(
                "session_close", {"session_id": session_id}
            )

    def get_session(self) -> Session:
        """Create and return a new SQLAlchemy session."""
        return self.SessionLocal()

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    @property
    def tags(self) -> TagManager:
        """
        Access TagManager for tag operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        if self._tag_manager is None:
            raise DatabaseError(
                "TagManager requires active session. "
                "Use within session_scope: "
                "with db.session_scope() as session: db.tags.upsert(...)"
            )
        return self._tag_manager

    @property
    def things(self) -> ThingManager:
        """
        Access ThingManager for thing and secondary tag operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        if self._thing_manager is None:
            raise DatabaseError(
                "ThingManager requires active session. Use within session_scope."
            )
        return self._thing_manager

    @property
    def collections(self) -> CollectionManager:
        """
        Access CollectionManager for collection and membership operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        if self._collection_manager is None:
            raise DatabaseError(
                "CollectionManager requires active session. Use within session_scope."
            )
        return self._collection_manager

    @property
    def packages(self) -> PackageManager:
        """
        Access PackageManager for descriptor storage.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        if self._package_manager is None:
            raise DatabaseError(
                "PackageManager requires active session. Use within session_scope."
            )
        return self._package_manager

    @property
    def changelog(self) -> ChangelogManager:
        """
        Access ChangelogManager for the change journal.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        if self._changelog_manager is None:
            raise DatabaseError(
                "ChangelogManager requires active session. Use within session_scope."
            )
        return self._changelog_manager

    # ---- Alembic setup ----
    def _alembic_config(self, connection=None) -> Config:
        """Build an Alembic configuration bound to this catalog."""
        alembic_cfg = Config()
        alembic_cfg.set_main_option("script_location", str(self.migrations_dir))
        alembic_cfg.set_main_option("sqlalchemy.url", self.url)
        if connection is not None:
            alembic_cfg.attributes["connection"] = connection
        return alembic_cfg

    def _current_revision(self) -> Optional[str]:
        with self.engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Create tables if needed and bring the schema up to date.

        Actions:
            Fresh database: create all tables from the ORM models and
                stamp the Alembic revision to head
            Existing database without revision: stamp head
            Existing database with revision: run pending migrations
        """
        try:
            with self.engine.connect() as conn:
                table_names = inspect(conn).get_table_names()
            is_fresh_db = not [t for t in table_names if t != "alembic_version"]

            if is_fresh_db:
                Base.metadata.create_all(bind=self.engine)
                self._stamp_head()
                safe_logger(self.logger).log_operation(
                    "fresh_database_created",
                    {"tables_created": len(Base.metadata.tables)},
                )
            elif self.uses_migrations and self._current_revision() is None:
                Base.metadata.create_all(bind=self.engine)
                self._stamp_head()
            elif self.uses_migrations:
                self.upgrade_database()
                safe_logger(self.logger).log_operation(
                    "existing_database_migrated",
                    {"table_count": len(table_names)},
                )
            else:
                Base.metadata.create_all(bind=self.engine)

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    def _stamp_head(self) -> None:
        """Mark the schema as current; failures are logged, not raised."""
        if not self.uses_migrations:
            return
        try:
            with self.engine.begin() as conn:
                command.stamp(self._alembic_config(conn), "head")
        except Exception as e:
            safe_logger(self.logger).log_error(e, {"operation": "stamp_database"})

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to the specified Alembic revision.

        Args:
            revision (str, optional): Target revision, 'head' by default.
        """
        if not self.uses_migrations:
            raise DatabaseError("Migrations are not configured for this catalog")
        try:
            with self.engine.begin() as conn:
                command.upgrade(self._alembic_config(conn), revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    def get_migration_history(self) -> Dict[str, Optional[str]]:
        """
        Get the current migration status of the database.

        Returns:
            Dictionary with keys:
                - 'current_revision' (str | None)
                - 'status' (str): 'up_to_date' or 'needs_migration'
                - 'error' (str, optional): Present if an exception occurred
        """
        try:
            current_rev = self._current_revision()
            return {
                "current_revision": current_rev,
                "status": "up_to_date" if current_rev else "needs_migration",
            }
        except Exception as e:
            safe_logger(self.logger).log_error(e, {"operation": "get_migration_history"})
            return {"error": str(e)}

    # ---- Seed data ----
    @handle_db_errors
    @log_database_operation("bootstrap")
    def bootstrap(self) -> None:
        """
        Seed the fallback classifier.

        Idempotent: an existing "miscellaneous" row is left untouched.
        """
        with self.session_scope() as session:
            if session.get(Tag, MISCELLANEOUS_TAG_ID) is None:
                self.tags.upsert(dict(MISCELLANEOUS_TAG))
                safe_logger(self.logger).log_operation(
                    "bootstrap_seeded", {"tag": MISCELLANEOUS_TAG_ID}
                )

    # ----- Lifecycle -----
    def close(self) -> None:
        """Dispose of pooled connections and drop the scratch file, if any."""
        self.engine.dispose()
        if self._scratch is not None:
            self._scratch.cleanup()

    def __enter__(self) -> "CatalogDB":
        """Support for context manager usage."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context manager exit."""
        del exc_type, exc_val, exc_tb
        self.close()
