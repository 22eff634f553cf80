"""
Standings arithmetic: derive team records and player goal tallies from matches.
Pure functions. Inputs are never mutated; every result is a fresh list of copies.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from leaguebook.models import Match, MatchEvent, MatchOutcome, Player, Team

# ---------- Points ----------
WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0

_ZEROED_TEAM_STATS = {
    "played": 0,
    "won": 0,
    "drawn": 0,
    "lost": 0,
    "goals_for": 0,
    "goals_against": 0,
    "points": 0,
}


def match_outcome(home_goals: int, away_goals: int) -> MatchOutcome:
    if home_goals > away_goals:
        return MatchOutcome.HOME
    if home_goals == away_goals:
        return MatchOutcome.DRAW
    return MatchOutcome.AWAY


def _apply_result(team: Team, goals_for: int, goals_against: int) -> None:
    """Add one match to a team record (team is a private working copy)."""
    team.played += 1
    team.goals_for += goals_for
    team.goals_against += goals_against
    if goals_for > goals_against:
        team.won += 1
        team.points += WIN_POINTS
    elif goals_for == goals_against:
        team.drawn += 1
        team.points += DRAW_POINTS
    else:
        team.lost += 1
        team.points += LOSS_POINTS


def reset_team_stats(teams: Iterable[Team]) -> list[Team]:
    return [replace(t, **_ZEROED_TEAM_STATS) for t in teams]


def reset_player_goals(players: Iterable[Player]) -> list[Player]:
    return [replace(p, goals=0) for p in players]


def recalculate_team_stats(teams: Iterable[Team], matches: Iterable[Match]) -> list[Team]:
    """
    Rebuild every team's record from the match list.
    Matches that reference a team not in `teams` are skipped: partial data
    must not break aggregation.
    """
    result = reset_team_stats(teams)
    by_id = {t.id: t for t in result}
    for m in matches:
        home = by_id.get(m.home_team_id)
        away = by_id.get(m.away_team_id)
        if home is None or away is None:
            continue
        _apply_result(home, m.home_goals, m.away_goals)
        _apply_result(away, m.away_goals, m.home_goals)
    return result


def player_goal_totals(matches: Iterable[Match]) -> dict[str, int]:
    """player_id -> goals over all non-own-goal events."""
    totals: dict[str, int] = {}
    for m in matches:
        for event in m.scorers:
            if event.is_own_goal:
                continue
            totals[event.player_id] = totals.get(event.player_id, 0) + event.goals
    return totals


def recalculate_player_goals(players: Iterable[Player], matches: Iterable[Match]) -> list[Player]:
    totals = player_goal_totals(matches)
    return [replace(p, goals=totals.get(p.id, 0)) for p in players]


# ---------- Scorer validation ----------


def scorer_total(scorers: Iterable[MatchEvent]) -> int:
    """Goals across all events, own goals included (they count toward the score)."""
    return sum(s.goals for s in scorers)


def validate_scorers(home_goals: int, away_goals: int, scorers: list[MatchEvent]) -> str | None:
    """
    Return a description of what is wrong with a score line, or None if it is consistent.
    An empty scorer list is always acceptable.
    """
    if home_goals < 0 or away_goals < 0:
        return f"Goals must be non-negative (got {home_goals}-{away_goals})"
    for s in scorers:
        if s.goals < 1:
            return f"Scorer {s.player_id} must have at least one goal (got {s.goals})"
    if scorers:
        total = scorer_total(scorers)
        expected = home_goals + away_goals
        if total != expected:
            return f"Scorer goals ({total}) must equal match goals ({expected})"
    return None
