"""
Read-only league tables and records: standings, top scorers, season progress,
archived-season summaries and the coaches' hall of fame.
No persistence, no mutation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from leaguebook.models import ArchivedLeague, LeagueSettings, Match, Player, Team


def _standing_key(team: Team) -> tuple[int, int, int, str]:
    return (-team.points, -team.goal_difference, -team.goals_for, team.name.lower())


def standings(teams: Iterable[Team]) -> list[dict[str, Any]]:
    """League table: points, then goal difference, then goals scored, then name."""
    rows = []
    for position, t in enumerate(sorted(teams, key=_standing_key), start=1):
        row = t.to_dict()
        row["position"] = position
        row["goalDifference"] = t.goal_difference
        rows.append(row)
    return rows


def top_scorers(players: Iterable[Player], teams: Iterable[Team], limit: int = 10) -> list[dict[str, Any]]:
    team_names = {t.id: t.name for t in teams}
    scorers = sorted((p for p in players if p.goals > 0), key=lambda p: (-p.goals, p.name.lower()))
    return [
        {
            "id": p.id,
            "name": p.name,
            "teamId": p.team_id,
            "teamName": team_names.get(p.team_id),
            "goals": p.goals,
            "image": p.image,
        }
        for p in scorers[:limit]
    ]


def season_progress(matches: list[Match], settings: LeagueSettings) -> dict[str, Any]:
    played = len(matches)
    return {
        "played": played,
        "maxMatches": settings.max_matches,
        "remaining": max(settings.max_matches - played, 0),
        "complete": played >= settings.max_matches,
    }


def season_champion(teams: Iterable[Team]) -> Team | None:
    """Team with most 3*won + drawn; first in list order wins ties."""
    best: Team | None = None
    for t in teams:
        if best is None or (3 * t.won + t.drawn) > (3 * best.won + best.drawn):
            best = t
    return best


def archive_summary(archive: ArchivedLeague) -> dict[str, Any]:
    champion = season_champion(archive.teams)
    leaders = top_scorers(archive.players, archive.teams, limit=1)
    return {
        "id": archive.id,
        "name": archive.name,
        "archivedAt": archive.archived_at,
        "champion": champion.name if champion else None,
        "championCoach": champion.coach if champion else None,
        "topScorer": leaders[0] if leaders else None,
        "teams": len(archive.teams),
        "players": len(archive.players),
        "matches": len(archive.matches),
        "totalGoals": sum(m.total_goals for m in archive.matches),
    }


# ---------- Hall of fame ----------


@dataclass
class CoachRecord:
    """One coach's totals across archived seasons."""
    name: str
    total_wins: int = 0
    total_draws: int = 0
    total_losses: int = 0
    total_goals: int = 0
    seasons_played: int = 0
    championships: list[str] = field(default_factory=list)
    team_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "totalWins": self.total_wins,
            "totalDraws": self.total_draws,
            "totalLosses": self.total_losses,
            "totalGoals": self.total_goals,
            "seasonsPlayed": self.seasons_played,
            "championships": list(self.championships),
            "teamNames": list(self.team_names),
        }


def hall_of_fame(archives: Iterable[ArchivedLeague]) -> list[CoachRecord]:
    """Coaches ordered by championships won, then total wins."""
    records: dict[str, CoachRecord] = {}
    for archive in archives:
        champion = season_champion(archive.teams)
        for team in archive.teams:
            rec = records.setdefault(team.coach, CoachRecord(name=team.coach))
            rec.total_wins += team.won
            rec.total_draws += team.drawn
            rec.total_losses += team.lost
            rec.total_goals += team.goals_for
            rec.seasons_played += 1
            if team.name not in rec.team_names:
                rec.team_names.append(team.name)
            if team is champion:
                rec.championships.append(archive.name)
    return sorted(records.values(), key=lambda r: (-len(r.championships), -r.total_wins))
