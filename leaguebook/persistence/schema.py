"""
SQLite schema for durable league state.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def league_state_schema() -> str:
    """One row per storage key; payload is the JSON bundle."""
    return """
    CREATE TABLE IF NOT EXISTS league_state (
        key TEXT PRIMARY KEY,
        payload TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """


def all_schema_sql() -> str:
    return league_state_schema()
