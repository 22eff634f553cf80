"""
League state container: owns teams, players, matches, archives, cups and settings.

Every mutation builds a new LeagueData snapshot, hands it to the store, then
publishes it; the three steps run under one lock so readers never see a
half-applied change. Invalid references and inconsistent input are rejected
as no-ops (logged, nothing saved, None/False returned) rather than raised.
"""
from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from leaguebook.models import (
    ArchivedLeague,
    Cup,
    LeagueData,
    LeagueSettings,
    Match,
    MatchEvent,
    Player,
    Team,
)
from leaguebook.persistence.local_store import InMemoryLeagueStore, LeagueStore
from leaguebook.stats import (
    recalculate_player_goals,
    recalculate_team_stats,
    reset_player_goals,
    reset_team_stats,
    validate_scorers,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[LeagueData], None]

_PLAYER_EDITABLE = frozenset({"name", "team_id", "image"})
_CUP_EDITABLE = frozenset({"name", "description", "image", "winner", "winner_team_id", "date"})


class SeasonCompleteError(ValueError):
    """add_match(enforce_cap=True) on a season that has reached max_matches."""

    def __init__(self, max_matches: int) -> None:
        super().__init__(f"League is complete! All {max_matches} matches have been played.")
        self.max_matches = max_matches


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _coerce_events(scorers: Iterable[MatchEvent | dict[str, Any]] | None) -> list[MatchEvent]:
    """Accept MatchEvent objects or camelCase dicts; always return fresh copies."""
    events: list[MatchEvent] = []
    for s in scorers or []:
        if isinstance(s, MatchEvent):
            events.append(replace(s))
        else:
            events.append(MatchEvent.from_dict(s))
    return events


def _check_editable(operation: str, changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise TypeError(f"{operation}() got non-editable fields: {sorted(unknown)}")
    # image is the only field that may be cleared
    nulled = sorted(k for k, v in changes.items() if v is None and k != "image")
    if nulled:
        raise TypeError(f"{operation}() got None for text fields: {nulled}")


def _find(items: list[Any], item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


# ---------- LeagueService ----------


class LeagueService:
    """
    The league reducer. Callers hold an instance; there is no module-level state.
    The home/away team selection is session state and is never persisted.
    """

    def __init__(self, store: LeagueStore | None = None) -> None:
        self._store: LeagueStore = store if store is not None else InMemoryLeagueStore()
        self._lock = threading.RLock()
        self._state = self._store.load()
        self._home_team_id: str | None = None
        self._away_team_id: str | None = None
        self._subscribers: list[Subscriber] = []

    # ---------- Publishing ----------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with every published state. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, new_state: LeagueData) -> None:
        """Save (best effort) then publish. Caller holds the lock."""
        try:
            saved = self._store.save(new_state)
        except Exception:
            logger.exception("League store raised while saving; keeping in-memory state")
            saved = False
        if not saved:
            logger.warning("Durable save failed; in-memory state is ahead of storage")
        self._state = new_state
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("League state subscriber failed")

    def _with_matches(self, state: LeagueData, matches: list[Match]) -> LeagueData:
        """New snapshot with `matches` and stats fully recomputed from them."""
        return replace(
            state,
            matches=matches,
            teams=recalculate_team_stats(state.teams, matches),
            players=recalculate_player_goals(state.players, matches),
        )

    # ---------- Read access ----------

    @property
    def state(self) -> LeagueData:
        """Current snapshot. Treat as read-only; use get_export_data() for a private copy."""
        return self._state

    @property
    def teams(self) -> list[Team]:
        return list(self._state.teams)

    @property
    def players(self) -> list[Player]:
        return list(self._state.players)

    @property
    def matches(self) -> list[Match]:
        return list(self._state.matches)

    @property
    def archives(self) -> list[ArchivedLeague]:
        return list(self._state.archives)

    @property
    def cups(self) -> list[Cup]:
        return list(self._state.cups)

    @property
    def settings(self) -> LeagueSettings:
        return self._state.settings

    def get_team(self, team_id: str) -> Team | None:
        return next((t for t in self._state.teams if t.id == team_id), None)

    def get_player(self, player_id: str) -> Player | None:
        return next((p for p in self._state.players if p.id == player_id), None)

    def get_match(self, match_id: str) -> Match | None:
        return next((m for m in self._state.matches if m.id == match_id), None)

    def get_cup(self, cup_id: str) -> Cup | None:
        return next((c for c in self._state.cups if c.id == cup_id), None)

    def get_archive(self, archive_id: str) -> ArchivedLeague | None:
        return next((a for a in self._state.archives if a.id == archive_id), None)

    @property
    def matches_remaining(self) -> int:
        return max(self._state.settings.max_matches - len(self._state.matches), 0)

    @property
    def is_season_complete(self) -> bool:
        """Advisory: the cap is reached. add_match still records past it."""
        return len(self._state.matches) >= self._state.settings.max_matches

    def get_export_data(self) -> LeagueData:
        with self._lock:
            return self._state.copy()

    # ---------- Team selection ----------

    @property
    def selected_home_team(self) -> Team | None:
        return self.get_team(self._home_team_id) if self._home_team_id else None

    @property
    def selected_away_team(self) -> Team | None:
        return self.get_team(self._away_team_id) if self._away_team_id else None

    def select_home_team(self, team_id: str | None) -> Team | None:
        with self._lock:
            team = self.get_team(team_id) if team_id else None
            self._home_team_id = team.id if team else None
            return team

    def select_away_team(self, team_id: str | None) -> Team | None:
        with self._lock:
            team = self.get_team(team_id) if team_id else None
            self._away_team_id = team.id if team else None
            return team

    def _resolve_team(self, explicit_id: str | None, selected_id: str | None, fallback_index: int) -> Team | None:
        team_id = explicit_id or selected_id
        if team_id:
            return self.get_team(team_id)
        teams = self._state.teams
        return teams[fallback_index] if len(teams) > fallback_index else None

    # ---------- Matches ----------

    def add_match(
        self,
        home_goals: int,
        away_goals: int,
        scorers: Iterable[MatchEvent | dict[str, Any]] | None = None,
        *,
        home_team_id: str | None = None,
        away_team_id: str | None = None,
        enforce_cap: bool = False,
    ) -> Match | None:
        """
        Record a match between the given teams, else the selected teams, else the
        first two teams. Team stats and player goals are recomputed from the full
        match list afterwards.
        The match cap is advisory unless enforce_cap is set, in which case a
        complete season raises SeasonCompleteError.
        """
        events = _coerce_events(scorers)
        with self._lock:
            state = self._state
            if enforce_cap and len(state.matches) >= state.settings.max_matches:
                raise SeasonCompleteError(state.settings.max_matches)
            home = self._resolve_team(home_team_id, self._home_team_id, 0)
            away = self._resolve_team(away_team_id, self._away_team_id, 1)
            if home is None or away is None or home.id == away.id:
                logger.warning(
                    "add_match rejected: need two distinct existing teams (home=%s, away=%s)",
                    home.id if home else None, away.id if away else None,
                )
                return None
            problem = validate_scorers(home_goals, away_goals, events)
            if problem is not None:
                logger.warning("add_match rejected: %s", problem)
                return None
            match = Match(
                id=_new_id("match"),
                home_team_id=home.id,
                away_team_id=away.id,
                home_team_name=home.name,
                away_team_name=away.name,
                home_goals=home_goals,
                away_goals=away_goals,
                scorers=events,
                date=_now_iso(),
            )
            self._commit(self._with_matches(state, state.matches + [match]))
            logger.info(
                "Recorded match %s: %s %d-%d %s",
                match.id, home.name, home_goals, away_goals, away.name,
            )
            return match

    def edit_match(
        self,
        match_id: str,
        home_goals: int,
        away_goals: int,
        scorers: Iterable[MatchEvent | dict[str, Any]] | None = None,
    ) -> Match | None:
        """Replace score and scorers of one match; teams, names and date are kept."""
        events = _coerce_events(scorers)
        with self._lock:
            state = self._state
            idx = _find(state.matches, match_id)
            if idx == -1:
                logger.debug("edit_match: unknown match %s", match_id)
                return None
            problem = validate_scorers(home_goals, away_goals, events)
            if problem is not None:
                logger.warning("edit_match %s rejected: %s", match_id, problem)
                return None
            updated = replace(
                state.matches[idx], home_goals=home_goals, away_goals=away_goals, scorers=events
            )
            matches = list(state.matches)
            matches[idx] = updated
            self._commit(self._with_matches(state, matches))
            return updated

    def delete_match(self, match_id: str) -> bool:
        with self._lock:
            state = self._state
            matches = [m for m in state.matches if m.id != match_id]
            if len(matches) == len(state.matches):
                logger.debug("delete_match: unknown match %s", match_id)
                return False
            self._commit(self._with_matches(state, matches))
            return True

    # ---------- Players ----------

    def add_player(self, name: str, team_id: str, image: str | None = None) -> Player | None:
        with self._lock:
            state = self._state
            if self.get_team(team_id) is None:
                logger.warning("add_player rejected: unknown team %s", team_id)
                return None
            player = Player(id=_new_id("player"), name=name, team_id=team_id, goals=0, image=image)
            self._commit(replace(state, players=state.players + [player]))
            return player

    def edit_player(self, player_id: str, **changes: Any) -> Player | None:
        """Update name, team_id and/or image. Goals are derived and cannot be edited."""
        _check_editable("edit_player", changes, _PLAYER_EDITABLE)
        with self._lock:
            state = self._state
            idx = _find(state.players, player_id)
            if idx == -1:
                logger.debug("edit_player: unknown player %s", player_id)
                return None
            if "team_id" in changes and self.get_team(changes["team_id"]) is None:
                logger.warning("edit_player %s rejected: unknown team %s", player_id, changes["team_id"])
                return None
            updated = replace(state.players[idx], **changes)
            players = list(state.players)
            players[idx] = updated
            self._commit(replace(state, players=players))
            return updated

    def delete_player(self, player_id: str) -> bool:
        """Remove a player. Their scorer entries stay in recorded matches."""
        with self._lock:
            state = self._state
            players = [p for p in state.players if p.id != player_id]
            if len(players) == len(state.players):
                logger.debug("delete_player: unknown player %s", player_id)
                return False
            self._commit(replace(state, players=players))
            return True

    # ---------- Teams & settings ----------

    def update_team_logo(self, team_id: str, logo: str) -> Team | None:
        with self._lock:
            state = self._state
            idx = _find(state.teams, team_id)
            if idx == -1:
                logger.debug("update_team_logo: unknown team %s", team_id)
                return None
            updated = replace(state.teams[idx], logo=logo)
            teams = list(state.teams)
            teams[idx] = updated
            self._commit(replace(state, teams=teams))
            return updated

    def update_settings(
        self, max_matches: int | None = None, max_teams: int | None = None
    ) -> LeagueSettings | None:
        with self._lock:
            state = self._state
            for label, value in (("max_matches", max_matches), ("max_teams", max_teams)):
                if value is not None and value < 1:
                    logger.warning("update_settings rejected: %s must be >= 1 (got %d)", label, value)
                    return None
            settings = LeagueSettings(
                max_matches=max_matches if max_matches is not None else state.settings.max_matches,
                max_teams=max_teams if max_teams is not None else state.settings.max_teams,
            )
            self._commit(replace(state, settings=settings))
            return settings

    # ---------- Season lifecycle ----------

    def archive_league(self, season_name: str) -> ArchivedLeague | None:
        """
        Close the season: store a deep snapshot of teams, players, matches and
        settings, then zero every team record and player tally and clear matches.
        """
        name = (season_name or "").strip()
        if not name:
            logger.warning("archive_league rejected: season name is blank")
            return None
        with self._lock:
            state = self._state
            archive = ArchivedLeague(
                id=_new_id("archive"),
                name=name,
                archived_at=_now_iso(),
                teams=copy.deepcopy(state.teams),
                players=copy.deepcopy(state.players),
                matches=copy.deepcopy(state.matches),
                settings=replace(state.settings),
            )
            self._commit(
                replace(
                    state,
                    archives=state.archives + [archive],
                    teams=reset_team_stats(state.teams),
                    players=reset_player_goals(state.players),
                    matches=[],
                )
            )
            logger.info("Archived season %r (%d matches)", name, len(archive.matches))
            return archive

    def delete_archive(self, archive_id: str) -> bool:
        with self._lock:
            state = self._state
            archives = [a for a in state.archives if a.id != archive_id]
            if len(archives) == len(state.archives):
                logger.debug("delete_archive: unknown archive %s", archive_id)
                return False
            self._commit(replace(state, archives=archives))
            return True

    def reset_league(self) -> None:
        """Discard the current season without archiving it."""
        with self._lock:
            state = self._state
            self._commit(
                replace(
                    state,
                    teams=reset_team_stats(state.teams),
                    players=reset_player_goals(state.players),
                    matches=[],
                )
            )
            logger.info("League reset; %d matches discarded", len(state.matches))

    # ---------- Cups ----------

    def add_cup(
        self,
        name: str,
        description: str = "",
        image: str | None = None,
        winner: str = "",
        winner_team_id: str = "",
        date: str = "",
    ) -> Cup:
        with self._lock:
            state = self._state
            cup = Cup(
                id=_new_id("cup"),
                name=name,
                description=description,
                image=image,
                winner=winner,
                winner_team_id=winner_team_id,
                date=date,
            )
            self._commit(replace(state, cups=state.cups + [cup]))
            return cup

    def edit_cup(self, cup_id: str, **changes: Any) -> Cup | None:
        _check_editable("edit_cup", changes, _CUP_EDITABLE)
        with self._lock:
            state = self._state
            idx = _find(state.cups, cup_id)
            if idx == -1:
                logger.debug("edit_cup: unknown cup %s", cup_id)
                return None
            updated = replace(state.cups[idx], **changes)
            cups = list(state.cups)
            cups[idx] = updated
            self._commit(replace(state, cups=cups))
            return updated

    def delete_cup(self, cup_id: str) -> bool:
        with self._lock:
            state = self._state
            cups = [c for c in state.cups if c.id != cup_id]
            if len(cups) == len(state.cups):
                logger.debug("delete_cup: unknown cup %s", cup_id)
                return False
            self._commit(replace(state, cups=cups))
            return True

    # ---------- Bulk ----------

    def load_full_data(self, data: LeagueData | dict[str, Any]) -> LeagueData:
        """Replace the whole state (initial sync, import). Missing fields get defaults."""
        if isinstance(data, LeagueData):
            new_state = data.copy()
        else:
            new_state = LeagueData.from_dict(data)
        with self._lock:
            self._home_team_id = None
            self._away_team_id = None
            self._commit(new_state)
            logger.info(
                "Loaded league data: %d teams, %d players, %d matches, %d archives",
                len(new_state.teams), len(new_state.players),
                len(new_state.matches), len(new_state.archives),
            )
            return new_state
