"""Call of Duty: Warzone ranking.

The composite is a weighted sum of four sub-scores, each on a 0-100 scale:

- K/D ratio: ``kd * 20``, capped at 100 (a 5.0 K/D maxes it out)
- average kills per match: ``avg * 5``, capped at 100 (20 kills)
- average damage per match: ``avg / 30``, capped at 100 (3000 damage)
- consistency: a fixed baseline of 70 until per-match history is kept

The weighted composite is multiplied by 10 to land on a 0-1000 scale.
"""

from .base import get_weight, matches_played

name = "warzone"
SLUG = "warzone"

CONSISTENCY_BASELINE = 70.0
SCORE_SCALE = 10.0
DEFAULT_WEIGHTS = {
    "kd_ratio": 0.40,
    "avg_kills": 0.30,
    "avg_damage": 0.20,
    "consistency": 0.10,
}


def supports(game_slug: str) -> bool:
    return game_slug == SLUG


def sub_scores(stats) -> dict[str, float]:
    """Return the four 0-100 sub-scores for a non-empty aggregate."""
    played = matches_played(stats)
    kills = stats.stat_as_float("total_kills")
    deaths = stats.stat_as_float("total_deaths")
    damage = stats.stat_as_float("total_damage")

    kd_ratio = kills / deaths if deaths > 0 else kills
    return {
        "kd_ratio": min(kd_ratio * 20, 100.0),
        "avg_kills": min((kills / played) * 5, 100.0),
        "avg_damage": min((damage / played) / 30, 100.0),
        "consistency": CONSISTENCY_BASELINE,
    }


def calculate(stats, game) -> float:
    if matches_played(stats) == 0:
        return 0.0

    weights = getattr(game, "ranking_weights", None) or {}
    parts = sub_scores(stats)
    score = sum(
        parts[key] * get_weight(weights, key, default)
        for key, default in DEFAULT_WEIGHTS.items()
    )
    return score * SCORE_SCALE
