"""
Persistence layer for league data.
No business logic: only load/save of the bundle, locally and remotely.
"""
from .db import get_connection, init_db, set_db_path
from .local_store import (
    STORAGE_KEY,
    InMemoryLeagueStore,
    LeagueStore,
    LocalLeagueStore,
    default_league_data,
)
from .remote import RemoteSyncGateway

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "STORAGE_KEY",
    "InMemoryLeagueStore",
    "LeagueStore",
    "LocalLeagueStore",
    "default_league_data",
    "RemoteSyncGateway",
]
