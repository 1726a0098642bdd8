from types import SimpleNamespace

import pytest

from tourney_rank.models import PlayerStats
from tourney_rank.scoring import generic

GAME = SimpleNamespace(slug="valorant", ranking_weights={"kd_ratio": 1.0})


def _stats(matches, **stats):
    row = PlayerStats.new("p1", "g1")
    row.stats = stats
    row.matches_played = matches
    return row


def test_generic_supports_any_slug():
    assert generic.supports("valorant")
    assert generic.supports("warzone")
    assert generic.supports("")


def test_generic_score_is_kd_times_100_plus_matches():
    stats = _stats(3, total_kills=30, total_deaths=10)
    assert generic.calculate(stats, GAME) == pytest.approx(303.0)


def test_generic_zero_matches_scores_zero():
    assert generic.calculate(_stats(0, total_kills=10), GAME) == 0.0


def test_generic_without_deaths_counts_kills():
    stats = _stats(2, total_kills=4)
    assert generic.calculate(stats, GAME) == pytest.approx(402.0)
