"""Shared pieces for ranking calculators."""

from __future__ import annotations

import math
from typing import Any, Mapping, Protocol

from ..exceptions import InvalidStats


class Calculator(Protocol):
    """A scoring strategy for one or more games.

    ``supports`` decides whether the calculator answers for a game slug and
    ``calculate`` maps a player's aggregate to a ranking score. Calculators
    are pure: the same stats and game always give the same score.
    """

    name: str

    def supports(self, game_slug: str) -> bool: ...

    def calculate(self, stats: Any, game: Any) -> float: ...


def matches_played(stats: Any) -> int:
    """Return the aggregate's match count, rejecting malformed values."""
    value = getattr(stats, "matches_played", None)
    if value is None:
        raise InvalidStats("matches_played is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidStats("matches_played must be an integer")
    if value < 0:
        raise InvalidStats("matches_played cannot be negative")
    return value


def get_weight(weights: Mapping[str, Any] | None, key: str, default: float) -> float:
    """Return ``weights[key]`` or ``default`` when the game does not set it."""
    if not weights or key not in weights:
        return default
    value = weights[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidStats(f"weight '{key}' must be a number")
    return float(value)
