"""
Football league record keeper: teams, players, matches, cups and archived seasons.
"""
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
from leaguebook.services.league_service import LeagueService

__all__ = [
    "ArchivedLeague",
    "Cup",
    "LeagueData",
    "LeagueSettings",
    "LeagueService",
    "Match",
    "MatchEvent",
    "Player",
    "Team",
]
