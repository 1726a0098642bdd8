"""Ranking calculators and the registry that dispatches between them."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from . import generic, warzone
from .base import Calculator


class CalculatorRegistry:
    """Ordered calculators; the first whose ``supports`` is true answers.

    Order matters: game-specific calculators must come before the generic
    fallback, which accepts everything.
    """

    def __init__(self, calculators: Iterable[Calculator]) -> None:
        self._calculators: tuple[Calculator, ...] = tuple(calculators)

    @property
    def calculators(self) -> Sequence[Calculator]:
        return self._calculators

    def find(self, game_slug: str) -> Optional[Calculator]:
        for calculator in self._calculators:
            if calculator.supports(game_slug):
                return calculator
        return None


def default_registry() -> CalculatorRegistry:
    return CalculatorRegistry([warzone, generic])


__all__ = [
    "Calculator",
    "CalculatorRegistry",
    "default_registry",
    "generic",
    "warzone",
]
