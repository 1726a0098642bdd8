"""Fallback ranking for games without a dedicated calculator.

``score = kd_ratio * 100 + matches_played``. It answers for every slug, so
the registry always has a calculator to hand back.
"""

from .base import matches_played

name = "generic"


def supports(game_slug: str) -> bool:
    return True


def calculate(stats, game) -> float:
    played = matches_played(stats)
    if played == 0:
        return 0.0
    return stats.kd_ratio() * 100 + played
