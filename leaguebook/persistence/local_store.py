"""
Durable local storage for the league bundle.

Saving is best effort: a failed write is logged and reported as False, never
raised, so the in-memory state stays the source of truth for the session.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from leaguebook.models import LeagueData

from .db import get_connection, init_db

logger = logging.getLogger(__name__)

STORAGE_KEY = "football-league-data"

_BUNDLE_FIELDS = ("teams", "players", "matches", "archives", "cups", "settings")


def _default_data_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "default_league.json"


def default_league_payload() -> dict[str, Any]:
    """Raw built-in dataset (camelCase bundle)."""
    with open(_default_data_path(), encoding="utf-8") as f:
        return json.load(f)


def default_league_data() -> LeagueData:
    return LeagueData.from_dict(default_league_payload())


def _merge_with_defaults(parsed: dict[str, Any]) -> dict[str, Any]:
    """Per-field fallback: absent fields come from the built-in dataset, except archives and cups."""
    defaults = default_league_payload()
    merged: dict[str, Any] = {}
    for name in _BUNDLE_FIELDS:
        value = parsed.get(name)
        if value is None:
            value = [] if name in ("archives", "cups") else defaults.get(name)
        merged[name] = value
    return merged


class LeagueStore(Protocol):
    """What the league service needs from durable storage."""

    def load(self) -> LeagueData: ...

    def save(self, bundle: LeagueData) -> bool: ...


# ---------- LocalLeagueStore ----------


class LocalLeagueStore:
    """SQLite-backed store holding the bundle as one JSON document under a key."""

    def __init__(self, db_path: str | Path | None = None, key: str = STORAGE_KEY) -> None:
        self._db_path = Path(db_path) if db_path else None
        self._key = key
        init_db(self._db_path)

    def _read_payload(self) -> str | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT payload FROM league_state WHERE key = ?", (self._key,)
            ).fetchone()
        finally:
            conn.close()
        return row["payload"] if row is not None else None

    def load(self) -> LeagueData:
        """Stored bundle with per-field defaults; the built-in dataset when nothing usable is stored."""
        try:
            payload = self._read_payload()
            if payload is not None:
                parsed = json.loads(payload)
                if not isinstance(parsed, dict):
                    raise ValueError(f"stored bundle is a {type(parsed).__name__}, expected an object")
                return LeagueData.from_dict(_merge_with_defaults(parsed))
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error("Error loading league state: %s", e)
        return default_league_data()

    def save(self, bundle: LeagueData) -> bool:
        try:
            payload = json.dumps(bundle.to_dict())
            now = datetime.now(timezone.utc).isoformat()
            conn = get_connection(self._db_path)
            try:
                conn.execute(
                    """
                    INSERT INTO league_state (key, payload, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                    """,
                    (self._key, payload, now),
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Error saving league state")
            return False
        return True


# ---------- InMemoryLeagueStore ----------


class InMemoryLeagueStore:
    """Keeps the last saved bundle in memory. For tests and throwaway sessions."""

    def __init__(self, initial: LeagueData | None = None) -> None:
        self._data = initial.copy() if initial is not None else None
        self.save_count = 0

    def load(self) -> LeagueData:
        if self._data is None:
            return default_league_data()
        return self._data.copy()

    def save(self, bundle: LeagueData) -> bool:
        self._data = bundle.copy()
        self.save_count += 1
        return True

    @property
    def saved(self) -> LeagueData | None:
        return self._data
