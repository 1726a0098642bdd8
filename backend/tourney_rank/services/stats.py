import logging
from typing import Mapping, Optional

import sentry_sdk
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..config import STATS_WRITE_RETRIES
from ..exceptions import (
    DomainException,
    GameNotFound,
    PlayerStatsNotFound,
    RankingRecalculationError,
)
from ..locks import entity_locks, game_key
from ..models import Game, Match, PlayerStats
from ..time_utils import utcnow
from .ranking import RankingResult, RankingService, ranking_service

logger = logging.getLogger(__name__)


async def get_player_stats(
    session: AsyncSession, player_id: str, game_id: str
) -> Optional[PlayerStats]:
    return (
        await session.execute(
            select(PlayerStats).where(
                PlayerStats.player_id == player_id,
                PlayerStats.game_id == game_id,
            )
        )
    ).scalar_one_or_none()


async def require_player_stats(
    session: AsyncSession, player_id: str, game_id: str
) -> PlayerStats:
    stats = await get_player_stats(session, player_id, game_id)
    if stats is None:
        raise PlayerStatsNotFound(player_id, game_id)
    return stats


async def get_or_create_player_stats(
    session: AsyncSession, player_id: str, game_id: str
) -> PlayerStats:
    """Return the aggregate for (player, game), adding an empty one if missing.

    A concurrent insert of the same pair surfaces as an ``IntegrityError`` on
    flush; callers holding the pair's lock retry the whole transaction.
    """
    stats = await get_player_stats(session, player_id, game_id)
    if stats is None:
        stats = PlayerStats.new(player_id, game_id)
        session.add(stats)
        logger.debug("Created stats for player %s in game %s", player_id, game_id)
    return stats


async def apply_match_to_stats(
    session: AsyncSession,
    match: Match,
    game: Game,
    *,
    ranking: Optional[RankingService] = None,
) -> dict[str, RankingResult]:
    """Fold every player entry of a verified match into its aggregate.

    Each affected aggregate gets its counters incremented, its match count
    bumped and its score/tier recomputed. Nothing is committed here; the
    caller owns the transaction and the per-(player, game) locks.
    """
    ranking = ranking or ranking_service
    results: dict[str, RankingResult] = {}
    for entry in match.player_stats:
        stats = await get_or_create_player_stats(session, entry.player_id, game.id)
        stats.apply_match(entry.deltas(), played_at=match.verified_at)
        results[entry.player_id] = ranking.recalculate(stats, game)
    match.stats_applied_at = utcnow()
    await session.flush()
    return results


async def rescore_players(
    session: AsyncSession,
    game: Game,
    *,
    ranking: Optional[RankingService] = None,
) -> int:
    """Recompute every aggregate of ``game`` and flush; returns how many changed."""
    ranking = ranking or ranking_service
    rows = (
        await session.execute(
            select(PlayerStats)
            .where(PlayerStats.game_id == game.id)
            .execution_options(populate_existing=True)
        )
    ).scalars().all()
    changed = 0
    for stats in rows:
        before = (stats.ranking_score, stats.tier)
        result = ranking.recalculate(stats, game)
        if before != (result.score, result.tier.value):
            changed += 1
    await session.flush()
    return changed


def _escalate(game: str, exc: BaseException) -> RankingRecalculationError:
    logger.error(
        "Recalculating rankings for game %s failed; previous weights kept",
        game,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    sentry_sdk.capture_exception(exc)
    return RankingRecalculationError(game)


async def recalculate_game_rankings(
    session: AsyncSession,
    game: Game,
    *,
    ranking_weights: Optional[Mapping[str, float]] = None,
    ranking: Optional[RankingService] = None,
) -> int:
    """Re-rank every player of ``game`` in a single transaction.

    With ``ranking_weights`` the game's weights are replaced in that same
    transaction, so either the new weights and every rescored aggregate are
    committed together or nothing is. Runs under the game lock, which match
    verification also holds, so no aggregate of the game is written
    concurrently. Version conflicts roll back and retry.
    """
    game_id, slug = game.id, game.slug
    last_error: Optional[BaseException] = None
    for attempt in range(1, STATS_WRITE_RETRIES + 1):
        async with entity_locks.hold(game_key(game_id)):
            try:
                row = await session.get(Game, game_id, populate_existing=True)
                if row is None:
                    raise GameNotFound(slug)
                if ranking_weights is not None:
                    row.ranking_weights = dict(ranking_weights)
                    row.updated_at = utcnow()
                    await session.flush()
                changed = await rescore_players(session, row, ranking=ranking)
                await session.commit()
            except DomainException:
                await session.rollback()
                raise
            except StaleDataError as exc:
                await session.rollback()
                last_error = exc
                logger.warning(
                    "Concurrent update while re-ranking game %s (attempt %d/%d)",
                    slug,
                    attempt,
                    STATS_WRITE_RETRIES,
                )
                continue
            except SQLAlchemyError as exc:
                await session.rollback()
                raise _escalate(slug, exc) from exc
        logger.info("Recalculated %d ranking(s) for game %s", changed, slug)
        return changed

    assert last_error is not None
    raise _escalate(slug, last_error) from last_error
