"""
REST API for the league record keeper.
Thin wrappers around LeagueService; reads are public, writes need the admin token.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from leaguebook.analytics import (
    archive_summary,
    hall_of_fame,
    season_progress,
    standings,
    top_scorers,
)
from leaguebook.auth import check_admin_password, create_admin_token, is_admin_token
from leaguebook.config import settings
from leaguebook.logging_config import setup_logging
from leaguebook.models import MatchEvent
from leaguebook.persistence import LocalLeagueStore, RemoteSyncGateway
from leaguebook.services import LeagueService, SeasonCompleteError, SyncService
from leaguebook.stats import validate_scorers

logger = logging.getLogger(__name__)

# ---------- Service wiring ----------
_league: LeagueService | None = None
_sync: SyncService | None = None


def set_league_service(league: LeagueService | None, sync: SyncService | None = None) -> None:
    """Install the services used by the endpoints (tests, embedding). None resets to lazy defaults."""
    global _league, _sync
    _league = league
    _sync = sync


def get_league_service() -> LeagueService:
    global _league
    if _league is None:
        _league = LeagueService(LocalLeagueStore())
    return _league


def get_sync_service(league: LeagueService = Depends(get_league_service)) -> SyncService:
    global _sync
    if _sync is None:
        remote = None
        if settings.remote_configured:
            remote = RemoteSyncGateway(
                owner=settings.github_owner,
                repo=settings.github_repo,
                path=settings.github_path,
                branch=settings.github_branch,
                token=settings.github_token,
                timeout=settings.remote_timeout,
            )
        _sync = SyncService(league, remote)
    return _sync


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings.log_level)
    get_league_service()
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Leaguebook API",
    description="Football league records: standings, matches, cups and archived seasons",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

security = HTTPBearer(auto_error=False)


def require_admin(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> None:
    if credentials is None or not is_admin_token(credentials.credentials):
        raise HTTPException(status_code=401, detail="Admin token required")


# ---------- Request models ----------


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class ScorerIn(BaseModel):
    player_id: str
    goals: int = Field(1, ge=1)
    is_own_goal: bool = False

    def to_event(self) -> MatchEvent:
        return MatchEvent(player_id=self.player_id, goals=self.goals, is_own_goal=self.is_own_goal)


class RecordMatchRequest(BaseModel):
    home_team_id: str | None = Field(None, description="Defaults to the first team")
    away_team_id: str | None = Field(None, description="Defaults to the second team")
    home_goals: int = Field(..., ge=0)
    away_goals: int = Field(..., ge=0)
    scorers: list[ScorerIn] = Field(default_factory=list)


class EditMatchRequest(BaseModel):
    home_goals: int = Field(..., ge=0)
    away_goals: int = Field(..., ge=0)
    scorers: list[ScorerIn] = Field(default_factory=list)


class CreatePlayerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    team_id: str
    image: str | None = None


def _provided_changes(req: BaseModel, clearable: frozenset[str] = frozenset({"image"})) -> dict[str, Any]:
    """Fields the client sent. An explicit null only clears fields in `clearable`; elsewhere it means "unchanged"."""
    return {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None or k in clearable}


class UpdatePlayerRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    team_id: str | None = None
    image: str | None = None


class TeamLogoRequest(BaseModel):
    logo: str


class SettingsRequest(BaseModel):
    max_matches: int | None = Field(None, ge=1)
    max_teams: int | None = Field(None, ge=1)


class ArchiveRequest(BaseModel):
    season_name: str = Field(..., min_length=1, max_length=200)


class CreateCupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    image: str | None = None
    winner: str = ""
    winner_team_id: str = ""
    date: str = ""


class UpdateCupRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    image: str | None = None
    winner: str | None = None
    winner_team_id: str | None = None
    date: str | None = None


# ---------- Public endpoints ----------


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/league")
def get_league(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    """Full bundle (same shape as storage and the remote snapshot)."""
    return league.get_export_data().to_dict()


@app.get("/standings")
def get_standings(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    state = league.state
    return {
        "standings": standings(state.teams),
        "progress": season_progress(state.matches, state.settings),
    }


@app.get("/scorers")
def get_scorers(
    limit: int = Query(default=10, ge=1, le=100),
    league: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    state = league.state
    return {"scorers": top_scorers(state.players, state.teams, limit=limit)}


@app.get("/matches")
def list_matches(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    return {"matches": [m.to_dict() for m in league.matches]}


@app.get("/players")
def list_players(
    team_id: str | None = Query(None, description="Only players of this team"),
    league: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    players = league.players
    if team_id:
        players = [p for p in players if p.team_id == team_id]
    return {"players": [p.to_dict() for p in players]}


@app.get("/cups")
def list_cups(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    return {"cups": [c.to_dict() for c in league.cups]}


@app.get("/archives")
def list_archives(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    return {"archives": [archive_summary(a) for a in league.archives]}


@app.get("/archives/{archive_id}")
def get_archive(archive_id: str, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    archive = league.get_archive(archive_id)
    if archive is None:
        raise HTTPException(status_code=404, detail=f"Archive not found: {archive_id}")
    d = archive.to_dict()
    d["summary"] = archive_summary(archive)
    d["standings"] = standings(archive.teams)
    return d


@app.get("/hall-of-fame")
def get_hall_of_fame(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    return {"coaches": [r.to_dict() for r in hall_of_fame(league.archives)]}


# ---------- Admin ----------


@app.post("/admin/login")
def admin_login(req: AdminLoginRequest) -> dict[str, Any]:
    if not check_admin_password(req.password):
        raise HTTPException(status_code=401, detail="Invalid admin password")
    return {"token": create_admin_token(), "is_admin": True}


@app.post("/matches", dependencies=[Depends(require_admin)])
def record_match(req: RecordMatchRequest, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    """Record a match. Refused once the season has reached its match cap."""
    for label, team_id in (("home", req.home_team_id), ("away", req.away_team_id)):
        if team_id is not None and league.get_team(team_id) is None:
            raise HTTPException(status_code=404, detail=f"Team not found ({label}): {team_id}")
    events = [s.to_event() for s in req.scorers]
    problem = validate_scorers(req.home_goals, req.away_goals, events)
    if problem is not None:
        raise HTTPException(status_code=400, detail=problem)
    try:
        match = league.add_match(
            req.home_goals, req.away_goals, events,
            home_team_id=req.home_team_id, away_team_id=req.away_team_id,
            enforce_cap=True,
        )
    except SeasonCompleteError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if match is None:
        raise HTTPException(status_code=400, detail="Select two different teams first")
    return {"match": match.to_dict(), "progress": season_progress(league.matches, league.settings)}


@app.put("/matches/{match_id}", dependencies=[Depends(require_admin)])
def edit_match(
    match_id: str, req: EditMatchRequest, league: LeagueService = Depends(get_league_service)
) -> dict[str, Any]:
    if league.get_match(match_id) is None:
        raise HTTPException(status_code=404, detail=f"Match not found: {match_id}")
    events = [s.to_event() for s in req.scorers]
    problem = validate_scorers(req.home_goals, req.away_goals, events)
    if problem is not None:
        raise HTTPException(status_code=400, detail=problem)
    match = league.edit_match(match_id, req.home_goals, req.away_goals, events)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Match not found: {match_id}")
    return {"match": match.to_dict()}


@app.delete("/matches/{match_id}", dependencies=[Depends(require_admin)])
def delete_match(match_id: str, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    if not league.delete_match(match_id):
        raise HTTPException(status_code=404, detail=f"Match not found: {match_id}")
    return {"deleted": match_id}


@app.post("/players", dependencies=[Depends(require_admin)])
def create_player(req: CreatePlayerRequest, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    player = league.add_player(req.name, req.team_id, image=req.image)
    if player is None:
        raise HTTPException(status_code=404, detail=f"Team not found: {req.team_id}")
    return {"player": player.to_dict()}


@app.patch("/players/{player_id}", dependencies=[Depends(require_admin)])
def update_player(
    player_id: str, req: UpdatePlayerRequest, league: LeagueService = Depends(get_league_service)
) -> dict[str, Any]:
    if league.get_player(player_id) is None:
        raise HTTPException(status_code=404, detail=f"Player not found: {player_id}")
    changes = _provided_changes(req)
    player = league.edit_player(player_id, **changes)
    if player is None:
        raise HTTPException(status_code=404, detail=f"Team not found: {changes.get('team_id')}")
    return {"player": player.to_dict()}


@app.delete("/players/{player_id}", dependencies=[Depends(require_admin)])
def delete_player(player_id: str, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    if not league.delete_player(player_id):
        raise HTTPException(status_code=404, detail=f"Player not found: {player_id}")
    return {"deleted": player_id}


@app.put("/teams/{team_id}/logo", dependencies=[Depends(require_admin)])
def update_team_logo(
    team_id: str, req: TeamLogoRequest, league: LeagueService = Depends(get_league_service)
) -> dict[str, Any]:
    team = league.update_team_logo(team_id, req.logo)
    if team is None:
        raise HTTPException(status_code=404, detail=f"Team not found: {team_id}")
    return {"team": team.to_dict()}


@app.put("/settings", dependencies=[Depends(require_admin)])
def update_settings(req: SettingsRequest, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    new_settings = league.update_settings(max_matches=req.max_matches, max_teams=req.max_teams)
    if new_settings is None:
        raise HTTPException(status_code=400, detail="Settings must be at least 1")
    return {"settings": new_settings.to_dict()}


@app.post("/archives", dependencies=[Depends(require_admin)])
def archive_season(req: ArchiveRequest, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    """Archive the current season and start a fresh one."""
    archive = league.archive_league(req.season_name)
    if archive is None:
        raise HTTPException(status_code=400, detail="Please enter a season name")
    return {"archive": archive_summary(archive)}


@app.delete("/archives/{archive_id}", dependencies=[Depends(require_admin)])
def delete_archive(archive_id: str, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    if not league.delete_archive(archive_id):
        raise HTTPException(status_code=404, detail=f"Archive not found: {archive_id}")
    return {"deleted": archive_id}


@app.post("/cups", dependencies=[Depends(require_admin)])
def create_cup(req: CreateCupRequest, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    cup = league.add_cup(**req.model_dump())
    return {"cup": cup.to_dict()}


@app.patch("/cups/{cup_id}", dependencies=[Depends(require_admin)])
def update_cup(
    cup_id: str, req: UpdateCupRequest, league: LeagueService = Depends(get_league_service)
) -> dict[str, Any]:
    cup = league.edit_cup(cup_id, **_provided_changes(req))
    if cup is None:
        raise HTTPException(status_code=404, detail=f"Cup not found: {cup_id}")
    return {"cup": cup.to_dict()}


@app.delete("/cups/{cup_id}", dependencies=[Depends(require_admin)])
def delete_cup(cup_id: str, league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    if not league.delete_cup(cup_id):
        raise HTTPException(status_code=404, detail=f"Cup not found: {cup_id}")
    return {"deleted": cup_id}


@app.post("/league/reset", dependencies=[Depends(require_admin)])
def reset_league(league: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    """Discard the current season without archiving."""
    league.reset_league()
    return league.get_export_data().to_dict()


@app.post("/league/import", dependencies=[Depends(require_admin)])
def import_league(
    payload: dict[str, Any] = Body(...), league: LeagueService = Depends(get_league_service)
) -> dict[str, Any]:
    try:
        data = league.load_full_data(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid league bundle: {e}")
    return data.to_dict()


@app.post("/sync/pull", dependencies=[Depends(require_admin)])
def sync_pull(sync: SyncService = Depends(get_sync_service)) -> dict[str, Any]:
    if not sync.configured:
        raise HTTPException(status_code=503, detail="Remote sync is not configured")
    result = sync.pull()
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.message)
    return result.to_dict()


@app.post("/sync/push", dependencies=[Depends(require_admin)])
def sync_push(sync: SyncService = Depends(get_sync_service)) -> dict[str, Any]:
    return sync.push().to_dict()


# ---------- Run with: uvicorn leaguebook.api:app --reload ----------
