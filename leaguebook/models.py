"""
Data models for the league record keeper.
Domain objects only; no persistence or API logic.

Attributes are snake_case; to_dict()/from_dict() speak the camelCase bundle
format shared by local storage, the remote snapshot and export.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_MAX_MATCHES = 50
DEFAULT_MAX_TEAMS = 2


def _mapping(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise TypeError(f"{what} must be an object, got {type(raw).__name__}")
    return raw


def _int(raw: dict[str, Any], key: str) -> int:
    value = raw.get(key)
    return int(value) if value is not None else 0


def _str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return str(value) if value is not None else ""


def _items(raw: dict[str, Any], key: str) -> list[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list, got {type(value).__name__}")
    return value


# ---------- Match outcome ----------
class MatchOutcome(str, Enum):
    HOME = "home"
    DRAW = "draw"
    AWAY = "away"


# ---------- Team ----------
@dataclass
class Team:
    """
    A league team. Stats are derived from the current season's matches and are
    never authoritative on their own once matches exist.
    """
    id: str
    name: str
    coach: str = ""
    logo: str = ""  # opaque image reference (data URL or path)
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coach": self.coach,
            "logo": self.logo,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goalsFor": self.goals_for,
            "goalsAgainst": self.goals_against,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Team:
        raw = _mapping(raw, "Team")
        return cls(
            id=str(raw["id"]),
            name=_str(raw, "name"),
            coach=_str(raw, "coach"),
            logo=_str(raw, "logo"),
            played=_int(raw, "played"),
            won=_int(raw, "won"),
            drawn=_int(raw, "drawn"),
            lost=_int(raw, "lost"),
            goals_for=_int(raw, "goalsFor"),
            goals_against=_int(raw, "goalsAgainst"),
            points=_int(raw, "points"),
        )


# ---------- Player ----------
@dataclass
class Player:
    """A player. team_id is a weak reference; goals is the current-season tally."""
    id: str
    name: str
    team_id: str
    goals: int = 0
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "teamId": self.team_id,
            "goals": self.goals,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Player:
        raw = _mapping(raw, "Player")
        return cls(
            id=str(raw["id"]),
            name=_str(raw, "name"),
            team_id=_str(raw, "teamId"),
            goals=_int(raw, "goals"),
            image=raw.get("image"),
        )


# ---------- MatchEvent ----------
@dataclass
class MatchEvent:
    """
    One scoring line of a match. Own goals count toward the match score but
    never toward the scoring player's tally.
    """
    player_id: str
    goals: int
    is_own_goal: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "goals": self.goals,
            "isOwnGoal": self.is_own_goal,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> MatchEvent:
        raw = _mapping(raw, "MatchEvent")
        return cls(
            player_id=_str(raw, "playerId"),
            goals=_int(raw, "goals"),
            is_own_goal=bool(raw.get("isOwnGoal", False)),
        )


# ---------- Match ----------
@dataclass
class Match:
    """
    A played match. Team names are a snapshot taken when the match was recorded.
    If scorers is non-empty its goals sum to home_goals + away_goals.
    """
    id: str
    home_team_id: str
    away_team_id: str
    home_team_name: str
    away_team_name: str
    home_goals: int
    away_goals: int
    scorers: list[MatchEvent] = field(default_factory=list)
    date: str = ""  # ISO-8601 creation timestamp

    @property
    def total_goals(self) -> int:
        return self.home_goals + self.away_goals

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "homeTeamName": self.home_team_name,
            "awayTeamName": self.away_team_name,
            "homeGoals": self.home_goals,
            "awayGoals": self.away_goals,
            "scorers": [s.to_dict() for s in self.scorers],
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Match:
        raw = _mapping(raw, "Match")
        return cls(
            id=str(raw["id"]),
            home_team_id=_str(raw, "homeTeamId"),
            away_team_id=_str(raw, "awayTeamId"),
            home_team_name=_str(raw, "homeTeamName"),
            away_team_name=_str(raw, "awayTeamName"),
            home_goals=_int(raw, "homeGoals"),
            away_goals=_int(raw, "awayGoals"),
            scorers=[MatchEvent.from_dict(s) for s in _items(raw, "scorers")],
            date=_str(raw, "date"),
        )


# ---------- Cup ----------
@dataclass
class Cup:
    """A trophy record. Not linked to standings; winner_team_id is descriptive only."""
    id: str
    name: str
    description: str = ""
    image: str | None = None
    winner: str = ""
    winner_team_id: str = ""
    date: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "winner": self.winner,
            "winnerTeamId": self.winner_team_id,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Cup:
        raw = _mapping(raw, "Cup")
        return cls(
            id=str(raw["id"]),
            name=_str(raw, "name"),
            description=_str(raw, "description"),
            image=raw.get("image"),
            winner=_str(raw, "winner"),
            winner_team_id=_str(raw, "winnerTeamId"),
            date=_str(raw, "date"),
        )


# ---------- LeagueSettings ----------
@dataclass
class LeagueSettings:
    """max_matches is advisory: the reducer records matches past it."""
    max_matches: int = DEFAULT_MAX_MATCHES
    max_teams: int = DEFAULT_MAX_TEAMS

    def to_dict(self) -> dict[str, Any]:
        return {"maxMatches": self.max_matches, "maxTeams": self.max_teams}

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> LeagueSettings:
        if raw is None:
            return cls()
        raw = _mapping(raw, "LeagueSettings")
        return cls(
            max_matches=int(raw.get("maxMatches") or DEFAULT_MAX_MATCHES),
            max_teams=int(raw.get("maxTeams") or DEFAULT_MAX_TEAMS),
        )


# ---------- ArchivedLeague ----------
@dataclass
class ArchivedLeague:
    """
    Snapshot of one finished season. Holds its own copies of teams, players and
    matches; later edits to the live league never reach it.
    """
    id: str
    name: str
    archived_at: str
    teams: list[Team] = field(default_factory=list)
    players: list[Player] = field(default_factory=list)
    matches: list[Match] = field(default_factory=list)
    settings: LeagueSettings = field(default_factory=LeagueSettings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "archivedAt": self.archived_at,
            "teams": [t.to_dict() for t in self.teams],
            "players": [p.to_dict() for p in self.players],
            "matches": [m.to_dict() for m in self.matches],
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ArchivedLeague:
        raw = _mapping(raw, "ArchivedLeague")
        return cls(
            id=str(raw["id"]),
            name=_str(raw, "name"),
            archived_at=_str(raw, "archivedAt"),
            teams=[Team.from_dict(t) for t in _items(raw, "teams")],
            players=[Player.from_dict(p) for p in _items(raw, "players")],
            matches=[Match.from_dict(m) for m in _items(raw, "matches")],
            settings=LeagueSettings.from_dict(raw.get("settings")),
        )


# ---------- LeagueData (bundle) ----------
@dataclass
class LeagueData:
    """The full exportable/importable bundle."""
    teams: list[Team] = field(default_factory=list)
    players: list[Player] = field(default_factory=list)
    matches: list[Match] = field(default_factory=list)
    archives: list[ArchivedLeague] = field(default_factory=list)
    cups: list[Cup] = field(default_factory=list)
    settings: LeagueSettings = field(default_factory=LeagueSettings)

    def copy(self) -> LeagueData:
        """Deep copy; nothing in the result is shared with self."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "teams": [t.to_dict() for t in self.teams],
            "players": [p.to_dict() for p in self.players],
            "matches": [m.to_dict() for m in self.matches],
            "archives": [a.to_dict() for a in self.archives],
            "cups": [c.to_dict() for c in self.cups],
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> LeagueData:
        """Missing collections default to empty, missing settings to the defaults."""
        raw = _mapping(raw if raw is not None else {}, "LeagueData")
        return cls(
            teams=[Team.from_dict(t) for t in _items(raw, "teams")],
            players=[Player.from_dict(p) for p in _items(raw, "players")],
            matches=[Match.from_dict(m) for m in _items(raw, "matches")],
            archives=[ArchivedLeague.from_dict(a) for a in _items(raw, "archives")],
            cups=[Cup.from_dict(c) for c in _items(raw, "cups")],
            settings=LeagueSettings.from_dict(raw.get("settings")),
        )
