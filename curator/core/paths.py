#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Curator project.

The project structure:
    ROOT/
    ├── curator/       # Package source
    │   └── migrations # Alembic environment and revisions
    ├── data/          # Catalog databases and descriptor files
    └── logs/          # Application logs

Every location can be overridden through the environment so that an
installed package can point at a catalog outside the source tree:
    CURATOR_DATA_DIR, CURATOR_DB_PATH, CURATOR_LOG_DIR
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/curator/core/paths.py.

    Returns:
        Path object for project root
    """
    return Path(__file__).resolve().parent.parent.parent


def _env_path(name: str, default: Path) -> Path:
    """Return the path stored in an environment variable, or the default."""
    value = os.environ.get(name)
    return Path(value).expanduser() if value else default


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "curator"

# --- Database ---
MIGRATIONS_DIR = PACKAGE_DIR / "migrations"
DATA_DIR = _env_path("CURATOR_DATA_DIR", ROOT / "data")
DB_PATH = _env_path("CURATOR_DB_PATH", DATA_DIR / "catalog.db")

# --- Descriptors ---
PACKAGES_DIR = DATA_DIR / "packages"

# ---- Logs ----
LOG_DIR = _env_path("CURATOR_LOG_DIR", ROOT / "logs")
