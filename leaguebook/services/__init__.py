"""
Service layer: the league reducer and remote sync orchestration.
league_service owns state; sync_service only moves bundles in and out of it.
"""
from .league_service import LeagueService, SeasonCompleteError
from .sync_service import SyncResult, SyncService

__all__ = [
    "LeagueService",
    "SeasonCompleteError",
    "SyncResult",
    "SyncService",
]
