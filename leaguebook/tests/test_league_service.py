"""
Tests for the league reducer: match/player/cup operations, season archival,
no-op rejection of invalid references, save-then-publish behaviour.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from leaguebook.models import LeagueData, LeagueSettings, MatchEvent, Player, Team
from leaguebook.persistence.local_store import InMemoryLeagueStore
from leaguebook.services.league_service import LeagueService, SeasonCompleteError
from leaguebook.stats import recalculate_player_goals, recalculate_team_stats

SCENARIO_SCORERS = [
    {"playerId": "p1", "goals": 2},
    {"playerId": "p2", "goals": 1},
    {"playerId": "p3", "goals": 1, "isOwnGoal": True},
]


def _initial() -> LeagueData:
    return LeagueData(
        teams=[
            Team(id="A", name="Alpha", coach="Ann"),
            Team(id="B", name="Beta", coach="Bob"),
            Team(id="C", name="Gamma", coach="Cid"),
        ],
        players=[
            Player(id="p1", name="One", team_id="A"),
            Player(id="p2", name="Two", team_id="A"),
            Player(id="p3", name="Three", team_id="B"),
        ],
        settings=LeagueSettings(max_matches=3, max_teams=3),
    )


@pytest.fixture
def store():
    return InMemoryLeagueStore(_initial())


@pytest.fixture
def league(store):
    return LeagueService(store)


def _team(league: LeagueService, team_id: str) -> Team:
    team = league.get_team(team_id)
    assert team is not None
    return team


# ---------- add_match ----------


def test_add_match_scenario(league, store):
    match = league.add_match(3, 1, SCENARIO_SCORERS)
    assert match is not None
    assert (match.home_team_id, match.away_team_id) == ("A", "B")
    assert (match.home_team_name, match.away_team_name) == ("Alpha", "Beta")
    assert match.id.startswith("match-")
    assert match.date

    a, b = _team(league, "A"), _team(league, "B")
    assert (a.played, a.won, a.points, a.goals_for, a.goals_against) == (1, 1, 3, 3, 1)
    assert (b.played, b.lost, b.points, b.goals_for, b.goals_against) == (1, 1, 0, 1, 3)
    assert league.get_player("p1").goals == 2
    assert league.get_player("p2").goals == 1
    assert league.get_player("p3").goals == 0
    assert store.save_count == 1
    assert store.saved == league.state


def test_add_match_matches_full_recompute(league):
    league.add_match(2, 0, home_team_id="A", away_team_id="C")
    league.add_match(1, 1, home_team_id="B", away_team_id="C")
    league.add_match(0, 3, [{"playerId": "p3", "goals": 3}], home_team_id="A", away_team_id="B")
    state = league.state
    assert state.teams == recalculate_team_stats(state.teams, state.matches)
    assert state.players == recalculate_player_goals(state.players, state.matches)


def test_add_match_uses_selected_teams(league):
    league.select_home_team("C")
    league.select_away_team("A")
    assert league.selected_home_team.id == "C"
    match = league.add_match(1, 0)
    assert (match.home_team_id, match.away_team_id) == ("C", "A")


def test_add_match_rejects_identical_teams(league, store):
    league.select_home_team("A")
    league.select_away_team("A")
    before = league.state
    assert league.add_match(1, 0) is None
    assert league.state is before
    assert store.save_count == 0


def test_add_match_rejects_unknown_team(league):
    assert league.add_match(1, 0, home_team_id="nope", away_team_id="B") is None
    assert league.matches == []


def test_add_match_needs_two_teams():
    single = LeagueService(InMemoryLeagueStore(LeagueData(teams=[Team(id="A", name="Alpha")])))
    assert single.add_match(1, 0) is None


def test_add_match_rejects_scorer_mismatch(league):
    assert league.add_match(3, 1, [MatchEvent("p1", 2)]) is None
    assert league.matches == []


def test_add_match_rejects_negative_goals(league):
    assert league.add_match(-1, 0) is None


def test_match_cap_is_advisory(league):
    for _ in range(3):
        league.add_match(1, 0)
    assert league.is_season_complete
    assert league.matches_remaining == 0
    assert league.add_match(0, 0) is not None
    assert len(league.matches) == 4


def test_enforced_cap_raises_without_recording(league, store):
    for _ in range(3):
        assert league.add_match(1, 0, enforce_cap=True) is not None
    saves = store.save_count
    with pytest.raises(SeasonCompleteError) as exc:
        league.add_match(0, 0, enforce_cap=True)
    assert exc.value.max_matches == 3
    assert "All 3 matches" in str(exc.value)
    assert len(league.matches) == 3
    assert store.save_count == saves


def test_add_match_does_not_alias_caller_events(league):
    events = [MatchEvent("p1", 1)]
    match = league.add_match(1, 0, events)
    events[0].goals = 9
    assert match.scorers[0].goals == 1


# ---------- edit_match / delete_match ----------


def test_edit_match_recomputes(league):
    match = league.add_match(3, 1, SCENARIO_SCORERS)
    edited = league.edit_match(match.id, 0, 2, [{"playerId": "p3", "goals": 2}])
    assert edited.home_team_name == "Alpha"
    assert edited.date == match.date
    a, b = _team(league, "A"), _team(league, "B")
    assert (a.lost, a.points, a.goals_for) == (1, 0, 0)
    assert (b.won, b.points, b.goals_for) == (1, 3, 2)
    assert league.get_player("p1").goals == 0
    assert league.get_player("p3").goals == 2


def test_edit_unknown_match_is_noop(league, store):
    assert league.edit_match("missing", 1, 0) is None
    assert store.save_count == 0


def test_edit_match_rejects_scorer_mismatch(league):
    match = league.add_match(1, 0, [{"playerId": "p1", "goals": 1}])
    assert league.edit_match(match.id, 2, 0, [{"playerId": "p1", "goals": 1}]) is None
    assert league.get_match(match.id).home_goals == 1


def test_edit_then_delete_equals_never_added(league):
    league.add_match(2, 2, [{"playerId": "p1", "goals": 2}, {"playerId": "p3", "goals": 2}])
    baseline = league.get_export_data()

    extra = league.add_match(1, 0, [{"playerId": "p2", "goals": 1}], home_team_id="A", away_team_id="C")
    league.edit_match(extra.id, 4, 1)
    assert league.delete_match(extra.id) is True

    after = league.get_export_data()
    assert after.teams == baseline.teams
    assert after.players == baseline.players
    assert after.matches == baseline.matches


def test_delete_unknown_match_is_noop(league, store):
    league.add_match(1, 0)
    before = league.state
    assert league.delete_match("missing") is False
    assert league.state is before
    assert store.save_count == 1


# ---------- players ----------


def test_add_edit_delete_player(league):
    player = league.add_player("Four", "C", image="img://four")
    assert player.id.startswith("player-")
    assert player.goals == 0
    edited = league.edit_player(player.id, name="Four Jr", team_id="B")
    assert (edited.name, edited.team_id, edited.image) == ("Four Jr", "B", "img://four")
    assert league.delete_player(player.id) is True
    assert league.get_player(player.id) is None


def test_add_player_unknown_team_rejected(league):
    assert league.add_player("Nobody", "ZZ") is None
    assert len(league.players) == 3


def test_edit_player_unknown_team_or_player(league):
    assert league.edit_player("p1", team_id="ZZ") is None
    assert league.get_player("p1").team_id == "A"
    assert league.edit_player("missing", name="x") is None


def test_edit_player_goals_not_editable(league):
    with pytest.raises(TypeError):
        league.edit_player("p1", goals=10)


@pytest.mark.parametrize("field", ["name", "team_id"])
def test_edit_player_rejects_none_text(league, field):
    with pytest.raises(TypeError):
        league.edit_player("p1", **{field: None})
    assert league.get_player("p1").name == "One"


def test_edit_player_can_clear_image(league):
    league.edit_player("p1", image="one.png")
    assert league.edit_player("p1", image=None).image is None


def test_delete_player_keeps_match_scorer_references(league):
    match = league.add_match(3, 1, SCENARIO_SCORERS)
    assert league.delete_player("p1") is True
    assert league.delete_player("p1") is False
    assert [s.player_id for s in league.get_match(match.id).scorers] == ["p1", "p2", "p3"]
    # Later recomputes only credit existing players
    league.edit_match(match.id, 3, 1, SCENARIO_SCORERS)
    assert {p.id for p in league.players} == {"p2", "p3"}
    assert league.get_player("p2").goals == 1


# ---------- teams & settings ----------


def test_update_team_logo_keeps_stats(league):
    league.add_match(2, 0)
    team = league.update_team_logo("A", "data:image/png;base64,AAA")
    assert team.logo == "data:image/png;base64,AAA"
    assert team.points == 3
    assert league.update_team_logo("missing", "x") is None


def test_update_settings(league):
    settings = league.update_settings(max_matches=10)
    assert settings == LeagueSettings(max_matches=10, max_teams=3)
    assert league.update_settings(max_teams=0) is None
    assert league.settings.max_teams == 3


# ---------- archive ----------


def test_archive_league_snapshots_and_resets(league):
    league.add_match(3, 1, SCENARIO_SCORERS)
    league.add_match(1, 1, home_team_id="B", away_team_id="C")
    before = league.get_export_data()

    archive = league.archive_league("  S1  ")
    assert archive is not None
    assert archive.name == "S1"
    assert archive.id.startswith("archive-")
    last = league.archives[-1]
    assert last == archive
    assert last.teams == before.teams
    assert last.players == before.players
    assert last.matches == before.matches
    assert last.settings == before.settings

    assert league.matches == []
    for t in league.teams:
        assert (t.played, t.won, t.drawn, t.lost, t.goals_for, t.goals_against, t.points) == (0,) * 7
    assert all(p.goals == 0 for p in league.players)


def test_archive_is_independent_of_later_edits(league):
    league.add_match(2, 0)
    archive = league.archive_league("S1")
    league.update_team_logo("A", "new-logo")
    league.edit_player("p1", name="Renamed")
    league.add_match(0, 5)
    assert archive.teams[0].logo == ""
    assert archive.teams[0].points == 3
    assert archive.players[0].name == "One"
    assert len(archive.matches) == 1


def test_archive_blank_name_rejected(league):
    assert league.archive_league("   ") is None
    assert league.archives == []


def test_delete_archive(league):
    archive = league.archive_league("S1")
    before = league.archives
    assert league.delete_archive("missing") is False
    assert league.archives == before
    assert league.delete_archive(archive.id) is True
    assert league.archives == []


def test_reset_league_discards_without_archive(league):
    league.add_match(3, 1, SCENARIO_SCORERS)
    league.reset_league()
    assert league.matches == []
    assert league.archives == []
    assert all(t.points == 0 and t.played == 0 for t in league.teams)
    assert all(p.goals == 0 for p in league.players)


# ---------- cups ----------


def test_cup_crud(league):
    cup = league.add_cup("Winter Cup", description="Knockout", winner="Alpha", winner_team_id="A", date="2026-02-01")
    assert cup.id.startswith("cup-")
    edited = league.edit_cup(cup.id, winner="Beta", winner_team_id="B")
    assert (edited.name, edited.winner, edited.winner_team_id) == ("Winter Cup", "Beta", "B")
    assert league.edit_cup("missing", name="x") is None
    assert league.delete_cup("missing") is False
    assert league.delete_cup(cup.id) is True
    assert league.cups == []


def test_edit_cup_rejects_unknown_field(league):
    cup = league.add_cup("Cup")
    with pytest.raises(TypeError):
        league.edit_cup(cup.id, id="other")
    with pytest.raises(TypeError):
        league.edit_cup(cup.id, name=None)


# ---------- bulk ----------


def test_load_full_data_defaults_missing_fields(league):
    league.select_home_team("A")
    data = league.load_full_data({"teams": [{"id": "X", "name": "Xeno"}]})
    assert [t.id for t in data.teams] == ["X"]
    assert data.players == [] and data.matches == [] and data.archives == [] and data.cups == []
    assert data.settings == LeagueSettings(max_matches=50, max_teams=2)
    assert league.selected_home_team is None


@pytest.mark.parametrize(
    "bundle",
    [{"settings": "oops"}, {"teams": [["A", "Alpha"]]}, {"matches": [{"id": "m1", "scorers": [None]}]}],
)
def test_load_full_data_rejects_malformed_bundle(league, store, bundle):
    before = league.state
    saves = store.save_count
    with pytest.raises(TypeError):
        league.load_full_data(bundle)
    assert league.state is before
    assert store.save_count == saves


def test_load_full_data_copies_input(league):
    bundle = _initial()
    league.load_full_data(bundle)
    bundle.teams[0].name = "Mutated"
    assert league.get_team("A").name == "Alpha"


def test_get_export_data_is_a_private_copy(league):
    league.add_match(1, 0)
    export = league.get_export_data()
    export.teams[0].points = 100
    export.matches.clear()
    assert league.get_team("A").points == 3
    assert len(league.matches) == 1


# ---------- publishing ----------


def test_subscribers_receive_published_state(league):
    seen: list[LeagueData] = []
    unsubscribe = league.subscribe(seen.append)
    league.add_match(1, 0)
    assert seen == [league.state]
    unsubscribe()
    league.add_match(1, 0)
    assert len(seen) == 1


def test_failing_subscriber_does_not_undo_transition(league):
    def boom(_state: LeagueData) -> None:
        raise RuntimeError("subscriber failure")

    league.subscribe(boom)
    assert league.add_match(1, 0) is not None
    assert len(league.matches) == 1


class _FailingStore(InMemoryLeagueStore):
    def __init__(self, raise_error: bool) -> None:
        super().__init__(_initial())
        self.raise_error = raise_error

    def save(self, bundle: LeagueData) -> bool:
        if self.raise_error:
            raise OSError("disk full")
        return False


@pytest.mark.parametrize("raise_error", [False, True])
def test_save_failure_keeps_in_memory_state(raise_error):
    league = LeagueService(_FailingStore(raise_error))
    match = league.add_match(2, 1)
    assert match is not None
    assert league.get_match(match.id) == match
    assert league.get_team("A").points == 3


def test_default_store_starts_from_default_dataset():
    league = LeagueService()
    assert len(league.teams) >= 2
    assert league.matches == []
