"""
Remote sync: pull the shared snapshot into the league, push the current bundle out.
The league service never waits on the network to decide what to mutate; only a
successful pull ends in load_full_data.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from leaguebook.persistence.remote import PUSH_UNSUPPORTED_MESSAGE, RemoteSyncGateway
from leaguebook.services.league_service import LeagueService

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch league data"


@dataclass
class SyncResult:
    ok: bool
    message: str

    def to_dict(self) -> dict[str, object]:
        return {"ok": self.ok, "message": self.message}


class SyncService:
    def __init__(self, league: LeagueService, remote: RemoteSyncGateway | None) -> None:
        self._league = league
        self._remote = remote

    @property
    def configured(self) -> bool:
        return self._remote is not None

    def pull(self) -> SyncResult:
        """Replace league state with the remote snapshot; on failure leave it untouched."""
        if self._remote is None:
            return SyncResult(ok=False, message="Remote sync is not configured")
        data = self._remote.fetch_remote()
        if data is None:
            return SyncResult(ok=False, message=FETCH_FAILED_MESSAGE)
        self._league.load_full_data(data)
        return SyncResult(
            ok=True,
            message=f"Loaded {len(data.teams)} teams and {len(data.matches)} matches from remote",
        )

    def push(self) -> SyncResult:
        if self._remote is None:
            return SyncResult(ok=False, message="Remote sync is not configured")
        ok = self._remote.push_remote(self._league.get_export_data())
        return SyncResult(ok=ok, message=PUSH_UNSUPPORTED_MESSAGE if ok else "Failed to update data")
