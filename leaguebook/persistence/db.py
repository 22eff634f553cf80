"""
sqlite location and connections for the league snapshot table.
The path comes from LEAGUEBOOK_DB_PATH unless overridden with set_db_path.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

from leaguebook.config import settings

from .schema import all_schema_sql

_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Override the configured database file (tests, alternate deployments)."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    if _db_path is not None:
        return _db_path
    return settings.db_path


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Open a connection with Row access. The caller closes it."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create the snapshot table if it is missing."""
    conn = get_connection(db_path)
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
