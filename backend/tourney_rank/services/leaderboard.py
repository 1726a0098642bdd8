"""Read-side ranking of players within a game.

Ordering is ``ranking_score`` descending, then ``matches_played``
descending, then ``player_id`` ascending, so pages are stable even when
scores tie. Ranks handed out by :func:`get_leaderboard` are positions in that
order; :func:`get_player_rank` counts only strictly higher scores, so tied
players share a rank there.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_LEADERBOARD_SIZE
from ..models import PlayerStats
from ..tiers import TIER_ORDER, Tier, tier_for_percentile
from .validation import clamp_page
from .stats import require_player_stats

LEADERBOARD_ORDER = (
    PlayerStats.ranking_score.desc(),
    PlayerStats.matches_played.desc(),
    PlayerStats.player_id.asc(),
)


@dataclass
class LeaderboardEntry:
    rank: int
    player_id: str
    ranking_score: float
    tier: str
    matches_played: int
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass
class PlayerRank:
    player_id: str
    game_id: str
    rank: int
    ranking_score: float
    tier: str
    percentile: float
    percentile_tier: str
    total_players: int


def percentile_from_counts(lower: int, total: int) -> float:
    """Share of the population (0-100) scoring strictly below a score."""
    if total <= 0:
        return 0.0
    return 100.0 * lower / total


def _entries(rows, start_rank: int) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=start_rank + i,
            player_id=row.player_id,
            ranking_score=row.ranking_score,
            tier=row.tier,
            matches_played=row.matches_played,
            stats=dict(row.stats or {}),
        )
        for i, row in enumerate(rows)
    ]


async def count_players(session: AsyncSession, game_id: str) -> int:
    total = (
        await session.execute(
            select(func.count())
            .select_from(PlayerStats)
            .where(PlayerStats.game_id == game_id)
        )
    ).scalar_one()
    return int(total or 0)


async def get_leaderboard(
    session: AsyncSession,
    game_id: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> tuple[list[LeaderboardEntry], int]:
    """Return one page of the game's leaderboard and the total player count."""
    limit, offset = clamp_page(limit, offset, DEFAULT_LEADERBOARD_SIZE)
    rows = (
        await session.execute(
            select(PlayerStats)
            .where(PlayerStats.game_id == game_id)
            .order_by(*LEADERBOARD_ORDER)
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()
    return _entries(rows, offset + 1), await count_players(session, game_id)


async def get_leaderboard_by_tier(
    session: AsyncSession,
    game_id: str,
    tier: Tier | str,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    tier = Tier.parse(tier)
    limit, _ = clamp_page(limit, 0, DEFAULT_LEADERBOARD_SIZE)
    rows = (
        await session.execute(
            select(PlayerStats)
            .where(PlayerStats.game_id == game_id, PlayerStats.tier == tier.value)
            .order_by(*LEADERBOARD_ORDER)
            .limit(limit)
        )
    ).scalars().all()
    return _entries(rows, 1)


async def get_top_by_stat(
    session: AsyncSession,
    game_id: str,
    stat_name: str,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    """Players ordered by one raw counter, highest first.

    Players without the counter are treated as zero. Sorting happens here
    rather than in SQL because JSON path ordering differs between backends.
    """
    limit, _ = clamp_page(limit, 0, DEFAULT_LEADERBOARD_SIZE)
    rows = (
        await session.execute(
            select(PlayerStats)
            .where(PlayerStats.game_id == game_id)
            .order_by(*LEADERBOARD_ORDER)
        )
    ).scalars().all()

    def _value(row: PlayerStats) -> float:
        value = (row.stats or {}).get(stat_name, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    ordered = sorted(rows, key=_value, reverse=True)[:limit]
    return _entries(ordered, 1)


async def calculate_percentile(session: AsyncSession, game_id: str, score: float) -> float:
    lower = (
        await session.execute(
            select(func.count())
            .select_from(PlayerStats)
            .where(PlayerStats.game_id == game_id, PlayerStats.ranking_score < score)
        )
    ).scalar_one()
    return percentile_from_counts(int(lower or 0), await count_players(session, game_id))


async def get_player_rank(session: AsyncSession, player_id: str, game_id: str) -> PlayerRank:
    stats = await require_player_stats(session, player_id, game_id)
    higher = (
        await session.execute(
            select(func.count())
            .select_from(PlayerStats)
            .where(
                PlayerStats.game_id == game_id,
                PlayerStats.ranking_score > stats.ranking_score,
            )
        )
    ).scalar_one()
    percentile = await calculate_percentile(session, game_id, stats.ranking_score)
    return PlayerRank(
        player_id=player_id,
        game_id=game_id,
        rank=int(higher or 0) + 1,
        ranking_score=stats.ranking_score,
        tier=stats.tier,
        percentile=percentile,
        percentile_tier=tier_for_percentile(percentile).value,
        total_players=await count_players(session, game_id),
    )


async def get_tier_distribution(session: AsyncSession, game_id: str) -> dict[str, int]:
    """Players per tier, every tier listed; the counts sum to the population."""
    rows = (
        await session.execute(
            select(PlayerStats.tier, func.count())
            .where(PlayerStats.game_id == game_id)
            .group_by(PlayerStats.tier)
        )
    ).all()
    distribution = {tier.value: 0 for tier in TIER_ORDER}
    for tier, count in rows:
        distribution[Tier.parse(tier).value] += int(count)
    return distribution
