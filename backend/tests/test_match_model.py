import pytest

from tourney_rank.exceptions import (
    InvalidKills,
    InvalidPlacement,
    InvalidPlayerStats,
    MatchNotDraft,
    MissingPlayerStats,
)
from tourney_rank.models import Match, MatchStatus


def _create(**overrides):
    kwargs = dict(
        tournament_id="cup-1",
        team_id="team-1",
        game_id="g1",
        team_placement=3,
        team_kills=12,
        player_stats=[
            {"player_id": "p1", "kills": 7, "deaths": 2, "damage": 2100},
            {"player_id": "p2", "kills": 5, "deaths": 3, "damage": 1500, "custom_stats": {"revives": 2}},
        ],
        submitted_by="captain-1",
    )
    kwargs.update(overrides)
    return Match.create(**kwargs)


def test_create_starts_as_draft() -> None:
    match = _create()
    assert match.status == MatchStatus.DRAFT
    assert match.is_draft
    assert [ps.player_id for ps in match.player_stats] == ["p1", "p2"]
    assert match.total_team_kills() == 12
    assert match.team_kd_ratio() == pytest.approx(12 / 5)


@pytest.mark.parametrize("placement", [0, 101, 150, -1, "1", 2.0, True])
def test_rejects_placement_out_of_range(placement) -> None:
    with pytest.raises(InvalidPlacement):
        _create(team_placement=placement)


@pytest.mark.parametrize("placement", [1, 100])
def test_accepts_placement_bounds(placement) -> None:
    assert _create(team_placement=placement).team_placement == placement


def test_rejects_negative_kills() -> None:
    with pytest.raises(InvalidKills):
        _create(team_kills=-1)


def test_requires_player_stats() -> None:
    with pytest.raises(MissingPlayerStats):
        _create(player_stats=[])


@pytest.mark.parametrize(
    "entries",
    [
        [{"kills": 1}],
        [{"player_id": "p1", "deaths": -1}],
        [{"player_id": "p1", "kills": 1.5}],
        [{"player_id": "p1"}, {"player_id": "p1"}],
        [{"player_id": "p1", "custom_stats": ["revives"]}],
    ],
    ids=["missing-id", "negative-counter", "float-counter", "duplicate-player", "bad-custom"],
)
def test_rejects_invalid_player_entries(entries) -> None:
    with pytest.raises(InvalidPlayerStats):
        _create(player_stats=entries)


def test_verify_then_reject_is_refused() -> None:
    match = _create()
    match.verify("admin-1")
    assert match.status == MatchStatus.VERIFIED
    assert match.verified_by == "admin-1"
    assert match.verified_at is not None

    with pytest.raises(MatchNotDraft):
        match.reject("admin-2", "late")
    assert match.status == MatchStatus.VERIFIED
    assert match.verified_by == "admin-1"
    assert match.rejection_reason is None


def test_reject_records_reason_and_blocks_verify() -> None:
    match = _create()
    match.reject("admin-1", "screenshot does not match")
    assert match.status == MatchStatus.REJECTED
    assert match.rejection_reason == "screenshot does not match"

    with pytest.raises(MatchNotDraft):
        match.verify("admin-1")
    assert match.status == MatchStatus.REJECTED


def test_entry_deltas_prefix_core_counters() -> None:
    match = _create()
    deltas = match.player_stats[1].deltas()
    assert deltas["total_kills"] == 5
    assert deltas["total_deaths"] == 3
    assert deltas["total_damage"] == 1500
    assert deltas["revives"] == 2
