import logging
from typing import Any, Iterable, Mapping, Optional

import sentry_sdk
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..config import DEFAULT_MATCH_PAGE_SIZE, MAX_PAGE_SIZE, STATS_WRITE_RETRIES
from ..db_errors import is_unique_violation
from ..exceptions import (
    DomainException,
    GameNotFound,
    MatchNotDraft,
    MatchNotFound,
    StatsAggregationError,
)
from ..locks import entity_locks, game_key, match_key, stats_key
from ..models import Game, Match, MatchPlayerStat, MatchStatus
from .games import get_game, validate_custom_stats
from .ranking import RankingService
from .stats import apply_match_to_stats
from .validation import clamp_page

logger = logging.getLogger(__name__)


async def submit_match(
    session: AsyncSession,
    *,
    tournament_id: str,
    team_id: str,
    game_id: str,
    team_placement: int,
    team_kills: int,
    player_stats: Iterable[Mapping[str, Any]],
    submitted_by: str,
    screenshot_url: Optional[str] = None,
) -> Match:
    """Validate and store a team's match report as a draft."""
    match = Match.create(
        tournament_id=tournament_id,
        team_id=team_id,
        game_id=game_id,
        team_placement=team_placement,
        team_kills=team_kills,
        player_stats=player_stats,
        submitted_by=submitted_by,
        screenshot_url=screenshot_url,
    )
    game = await get_game(session, game_id)
    for entry in match.player_stats:
        validate_custom_stats(game, entry.custom_stats)
    match.game_id = game.id

    session.add(match)
    await session.commit()
    logger.info(
        "Match %s submitted by %s for team %s (%d player(s))",
        match.id,
        submitted_by,
        team_id,
        len(match.player_stats),
    )
    return match


async def get_match(session: AsyncSession, match_id: str) -> Match:
    match = await session.get(Match, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


async def _reload(session: AsyncSession, match_id: str) -> Match:
    match = await session.get(Match, match_id, populate_existing=True)
    if match is None:
        raise MatchNotFound(match_id)
    return match


def _lock_keys(match: Match) -> list:
    keys: list = [game_key(match.game_id), match_key(match.id)]
    keys.extend(stats_key(ps.player_id, match.game_id) for ps in match.player_stats)
    return keys


def _escalate(match_id: str, exc: BaseException) -> StatsAggregationError:
    logger.error(
        "Applying stats for match %s failed; match left unverified",
        match_id,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    sentry_sdk.capture_exception(exc)
    return StatsAggregationError(match_id)


async def _apply_with_retries(
    session: AsyncSession,
    match_id: str,
    transition,
    ranking: Optional[RankingService],
) -> Match:
    """Run ``transition`` on a fresh copy of the match, apply stats and commit.

    The status change and the stats writes share one transaction: if the
    stats cannot be written, the match is rolled back to its previous state.
    Version conflicts and racing inserts roll back and retry.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, STATS_WRITE_RETRIES + 1):
        match = await _reload(session, match_id)
        transition(match)
        try:
            game = await session.get(Game, match.game_id, populate_existing=True)
            if game is None:
                raise GameNotFound(match.game_id)
            await apply_match_to_stats(session, match, game, ranking=ranking)
            await session.commit()
        except DomainException:
            await session.rollback()
            raise
        except StaleDataError as exc:
            await session.rollback()
            last_error = exc
            logger.warning(
                "Concurrent update while applying match %s (attempt %d/%d)",
                match_id,
                attempt,
                STATS_WRITE_RETRIES,
            )
            continue
        except IntegrityError as exc:
            await session.rollback()
            if not is_unique_violation(exc):
                raise _escalate(match_id, exc) from exc
            last_error = exc
            logger.warning(
                "Player stats created concurrently for match %s (attempt %d/%d)",
                match_id,
                attempt,
                STATS_WRITE_RETRIES,
            )
            continue
        except SQLAlchemyError as exc:
            await session.rollback()
            raise _escalate(match_id, exc) from exc
        return match

    assert last_error is not None
    raise _escalate(match_id, last_error) from last_error


async def verify_match(
    session: AsyncSession,
    match_id: str,
    admin_id: str,
    *,
    ranking: Optional[RankingService] = None,
) -> Match:
    """Approve a draft match and fold its stats into each player's aggregate.

    Holds the game lock, the match lock and every affected (player, game)
    lock for the duration, so concurrent verifications touching the same
    player are applied one after the other and never interleave with a
    re-rank of the game.
    """
    match = await get_match(session, match_id)
    if not match.is_draft:
        raise MatchNotDraft(match_id, match.status)

    async with entity_locks.hold_many(_lock_keys(match)):
        match = await _apply_with_retries(
            session,
            match_id,
            lambda m: m.verify(admin_id),
            ranking,
        )
    logger.info("Match %s verified by %s", match_id, admin_id)
    return match


async def reject_match(
    session: AsyncSession, match_id: str, admin_id: str, reason: str = ""
) -> Match:
    async with entity_locks.hold(match_key(match_id)):
        match = await _reload(session, match_id)
        match.reject(admin_id, (reason or "").strip())
        try:
            await session.commit()
        except StaleDataError as exc:
            await session.rollback()
            raise MatchNotDraft(match_id) from exc
    logger.info("Match %s rejected by %s: %s", match_id, admin_id, match.rejection_reason)
    return match


async def review_match(
    session: AsyncSession,
    match_id: str,
    admin_id: str,
    *,
    approved: bool,
    reason: Optional[str] = None,
    ranking: Optional[RankingService] = None,
) -> Match:
    if approved:
        return await verify_match(session, match_id, admin_id, ranking=ranking)
    return await reject_match(session, match_id, admin_id, reason or "")


async def reconcile_verified_matches(
    session: AsyncSession,
    *,
    limit: int = MAX_PAGE_SIZE,
    ranking: Optional[RankingService] = None,
) -> int:
    """Apply stats for verified matches that never had them applied.

    Returns the number of matches reconciled. A match that still fails is
    reported and left for the next run.
    """
    pending = (
        await session.execute(
            select(Match)
            .where(
                Match.status == MatchStatus.VERIFIED,
                Match.stats_applied_at.is_(None),
            )
            .order_by(Match.verified_at, Match.id)
            .limit(limit)
        )
    ).scalars().all()

    def _still_pending(match: Match) -> None:
        if not match.is_verified or match.stats_applied_at is not None:
            raise MatchNotDraft(match.id, match.status)

    # A rollback expires loaded instances, so take what the loop needs now.
    work = [(match.id, _lock_keys(match)) for match in pending]
    applied = 0
    for match_id, keys in work:
        try:
            async with entity_locks.hold_many(keys):
                await _apply_with_retries(session, match_id, _still_pending, ranking)
        except MatchNotDraft:
            continue
        except StatsAggregationError:
            continue
        applied += 1
    if applied:
        logger.info("Reconciled stats for %d verified match(es)", applied)
    return applied


async def list_matches(
    session: AsyncSession,
    *,
    tournament_id: Optional[str] = None,
    team_id: Optional[str] = None,
    player_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> tuple[list[Match], int]:
    """Return a page of matches (newest first) and the total matching count."""
    limit, offset = clamp_page(limit, offset, DEFAULT_MATCH_PAGE_SIZE)
    conditions = []
    if tournament_id:
        conditions.append(Match.tournament_id == tournament_id)
    if team_id:
        conditions.append(Match.team_id == team_id)
    if player_id:
        conditions.append(
            Match.id.in_(
                select(MatchPlayerStat.match_id).where(
                    MatchPlayerStat.player_id == player_id
                )
            )
        )
    if status:
        conditions.append(Match.status == status)

    total = (
        await session.execute(select(func.count()).select_from(Match).where(*conditions))
    ).scalar_one()
    rows = (
        await session.execute(
            select(Match)
            .where(*conditions)
            .order_by(Match.created_at.desc(), Match.id)
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()
    return list(rows), int(total or 0)


async def list_unverified_matches(
    session: AsyncSession,
    *,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> tuple[list[Match], int]:
    """Draft matches awaiting review, oldest first."""
    limit, offset = clamp_page(limit, offset, DEFAULT_MATCH_PAGE_SIZE)
    condition = Match.status == MatchStatus.DRAFT
    total = (
        await session.execute(select(func.count()).select_from(Match).where(condition))
    ).scalar_one()
    rows = (
        await session.execute(
            select(Match)
            .where(condition)
            .order_by(Match.created_at, Match.id)
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()
    return list(rows), int(total or 0)
