from types import SimpleNamespace

import pytest

from tourney_rank.exceptions import UnsupportedGame
from tourney_rank.models import PlayerStats
from tourney_rank.scoring import CalculatorRegistry, default_registry, generic, warzone
from tourney_rank.services.ranking import RankingService
from tourney_rank.tiers import Tier


def _stats(matches, **stats):
    row = PlayerStats.new("p1", "g1")
    row.stats = stats
    row.matches_played = matches
    return row


def test_default_registry_prefers_specific_calculator():
    registry = default_registry()
    assert registry.find("warzone") is warzone
    assert registry.find("apex") is generic


def test_first_supporting_calculator_wins():
    registry = CalculatorRegistry([generic, warzone])
    assert registry.find("warzone") is generic


def test_empty_registry_finds_nothing():
    assert CalculatorRegistry([]).find("warzone") is None


def test_ranking_service_returns_score_and_tier():
    game = SimpleNamespace(slug="warzone", ranking_weights={})
    result = RankingService().calculate_ranking(
        _stats(5, total_kills=50, total_deaths=10, total_damage=6000), game
    )
    assert result.score == pytest.approx(700.0)
    assert result.tier is Tier.ADVANCED


def test_ranking_service_without_calculator_raises():
    service = RankingService(CalculatorRegistry([warzone]))
    game = SimpleNamespace(slug="apex", ranking_weights={})
    with pytest.raises(UnsupportedGame):
        service.calculate_ranking(_stats(1), game)


def test_recalculate_stores_score_and_tier():
    row = _stats(3, total_kills=30, total_deaths=10)
    game = SimpleNamespace(slug="valorant", ranking_weights={})
    result = RankingService().recalculate(row, game)
    assert row.ranking_score == pytest.approx(303.0)
    assert row.tier == Tier.BEGINNER.value
    assert result.tier is Tier.BEGINNER
