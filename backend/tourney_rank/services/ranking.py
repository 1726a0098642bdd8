import logging
from typing import NamedTuple, Optional

from ..exceptions import UnsupportedGame
from ..models import Game, PlayerStats
from ..scoring import CalculatorRegistry, default_registry
from ..tiers import Tier, tier_for_score

logger = logging.getLogger(__name__)


class RankingResult(NamedTuple):
    score: float
    tier: Tier


class RankingService:
    """Select a calculator for a game, score the aggregate and derive its tier.

    Tiers use fixed score thresholds; population-relative standing is a
    separate query (see ``services.leaderboard.calculate_percentile``).
    """

    def __init__(self, registry: Optional[CalculatorRegistry] = None) -> None:
        self.registry = registry or default_registry()

    def calculate_ranking(self, stats: PlayerStats, game: Game) -> RankingResult:
        calculator = self.registry.find(game.slug)
        if calculator is None:
            logger.error("No ranking calculator registered for game %r", game.slug)
            raise UnsupportedGame(game.slug)
        score = calculator.calculate(stats, game)
        return RankingResult(score, tier_for_score(score))

    def recalculate(self, stats: PlayerStats, game: Game) -> RankingResult:
        """Score ``stats`` and store the result on the aggregate."""
        result = self.calculate_ranking(stats, game)
        stats.apply_ranking(result.score, result.tier)
        return result


ranking_service = RankingService()


def calculate_ranking(stats: PlayerStats, game: Game) -> RankingResult:
    return ranking_service.calculate_ranking(stats, game)
