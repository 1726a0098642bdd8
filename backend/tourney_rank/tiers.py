"""Player tiers and the thresholds that derive them."""

from __future__ import annotations

from enum import Enum

from .exceptions import InvalidTier


class Tier(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ELITE = "elite"

    @property
    def level(self) -> int:
        return TIER_ORDER.index(self)

    @classmethod
    def parse(cls, value: "Tier | str") -> "Tier":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidTier(value) from None


TIER_ORDER: tuple[Tier, ...] = (
    Tier.BEGINNER,
    Tier.INTERMEDIATE,
    Tier.ADVANCED,
    Tier.ELITE,
)

# Highest threshold first; the first one the score reaches wins.
SCORE_THRESHOLDS: tuple[tuple[float, Tier], ...] = (
    (800.0, Tier.ELITE),
    (600.0, Tier.ADVANCED),
    (400.0, Tier.INTERMEDIATE),
)

PERCENTILE_THRESHOLDS: tuple[tuple[float, Tier], ...] = (
    (95.0, Tier.ELITE),
    (80.0, Tier.ADVANCED),
    (50.0, Tier.INTERMEDIATE),
)


def tier_for_score(score: float) -> Tier:
    """Return the tier for an absolute ranking score."""
    for threshold, tier in SCORE_THRESHOLDS:
        if score >= threshold:
            return tier
    return Tier.BEGINNER


def tier_for_percentile(percentile: float) -> Tier:
    """Return the tier a percentile would map to.

    This is the population-relative view; stored tiers always come from
    :func:`tier_for_score`.
    """
    for threshold, tier in PERCENTILE_THRESHOLDS:
        if percentile >= threshold:
            return tier
    return Tier.BEGINNER
