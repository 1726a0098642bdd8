from types import SimpleNamespace

import pytest

from tourney_rank.exceptions import InvalidStats
from tourney_rank.models import PlayerStats
from tourney_rank.scoring import warzone
from tourney_rank.tiers import Tier, tier_for_score

WEIGHTS = {"kd_ratio": 0.40, "avg_kills": 0.30, "avg_damage": 0.20, "consistency": 0.10}
GAME = SimpleNamespace(slug="warzone", ranking_weights=WEIGHTS)


def _stats(matches, **stats):
    row = PlayerStats.new("p1", "g1")
    row.stats = stats
    row.matches_played = matches
    return row


def test_warzone_supports_only_its_slug():
    assert warzone.supports("warzone")
    assert not warzone.supports("valorant")
    assert not warzone.supports("")


def test_warzone_reference_player():
    stats = _stats(5, total_kills=50, total_deaths=10, total_damage=6000)

    parts = warzone.sub_scores(stats)
    assert parts == {
        "kd_ratio": pytest.approx(100.0),
        "avg_kills": pytest.approx(50.0),
        "avg_damage": pytest.approx(40.0),
        "consistency": 70.0,
    }

    score = warzone.calculate(stats, GAME)
    assert score == pytest.approx(700.0)
    assert tier_for_score(score) is Tier.ADVANCED


def test_warzone_zero_matches_scores_zero():
    assert warzone.calculate(_stats(0, total_kills=99), GAME) == 0.0


def test_warzone_sub_scores_are_capped():
    stats = _stats(1, total_kills=40, total_deaths=0, total_damage=9000)
    parts = warzone.sub_scores(stats)
    assert parts["kd_ratio"] == 100.0
    assert parts["avg_kills"] == 100.0
    assert parts["avg_damage"] == 100.0
    # 100 everywhere except consistency: (40 + 30 + 20 + 7) * 10
    assert warzone.calculate(stats, GAME) == pytest.approx(970.0)


def test_warzone_zero_deaths_uses_raw_kills():
    stats = _stats(2, total_kills=3, total_deaths=0, total_damage=0)
    assert warzone.sub_scores(stats)["kd_ratio"] == pytest.approx(60.0)


def test_warzone_honours_game_weights():
    stats = _stats(5, total_kills=50, total_deaths=10, total_damage=6000)
    only_kd = SimpleNamespace(slug="warzone", ranking_weights={"kd_ratio": 1.0})
    # Keys the game leaves out fall back to the built-in weights.
    expected = (100.0 * 1.0 + 50.0 * 0.30 + 40.0 * 0.20 + 70.0 * 0.10) * 10
    assert warzone.calculate(stats, only_kd) == pytest.approx(expected)


def test_warzone_is_deterministic():
    stats = _stats(7, total_kills=33, total_deaths=12, total_damage=10450)
    assert warzone.calculate(stats, GAME) == warzone.calculate(stats, GAME)


@pytest.mark.parametrize(
    "matches, stats",
    [
        (None, {}),
        (-1, {}),
        (2, {"total_kills": -5}),
        (2, {"total_kills": "lots"}),
    ],
    ids=["missing-matches", "negative-matches", "negative-kills", "non-numeric"],
)
def test_warzone_rejects_malformed_stats(matches, stats):
    row = _stats(0, **stats)
    row.matches_played = matches
    with pytest.raises(InvalidStats):
        warzone.calculate(row, GAME)
