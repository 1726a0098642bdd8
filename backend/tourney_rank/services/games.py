import logging
from typing import Any, Mapping, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db_errors import is_unique_violation
from ..exceptions import (
    GameAlreadyExists,
    GameNotFound,
    InvalidGameName,
    InvalidSlug,
)
from ..models import Game
from ..time_utils import utcnow
from .stats import recalculate_game_rankings
from .validation import validate_stat_schema, validate_stat_value, validate_weights

logger = logging.getLogger(__name__)


def _normalize_slug(slug: str) -> str:
    return (slug or "").strip().lower()


async def get_game(session: AsyncSession, game: str) -> Game:
    """Look a game up by id or slug."""
    row = (
        await session.execute(
            select(Game).where(or_(Game.id == game, Game.slug == _normalize_slug(game)))
        )
    ).scalars().first()
    if row is None:
        raise GameNotFound(game)
    return row


async def list_games(session: AsyncSession, *, active_only: bool = False) -> list[Game]:
    stmt = select(Game).order_by(Game.name)
    if active_only:
        stmt = stmt.where(Game.is_active.is_(True))
    return list((await session.execute(stmt)).scalars().all())


async def create_game(
    session: AsyncSession,
    *,
    name: str,
    slug: str,
    ranking_weights: Mapping[str, Any],
    stat_schema: Optional[Mapping[str, Any]] = None,
    description: Optional[str] = None,
    platform_id_format: Optional[str] = None,
) -> Game:
    name = (name or "").strip()
    if not name:
        raise InvalidGameName()
    slug = _normalize_slug(slug)
    if not slug:
        raise InvalidSlug()
    weights = validate_weights(ranking_weights)
    schema = validate_stat_schema(stat_schema)

    existing = (
        await session.execute(select(Game.id).where(Game.slug == slug))
    ).scalar_one_or_none()
    if existing is not None:
        raise GameAlreadyExists(slug)

    now = utcnow()
    game = Game(
        name=name,
        slug=slug,
        description=description,
        stat_schema=schema,
        ranking_weights=weights,
        platform_id_format=platform_id_format,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    session.add(game)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise GameAlreadyExists(slug) from exc
        raise
    logger.info("Created game %s (%s)", game.slug, game.id)
    return game


async def update_game_weights(
    session: AsyncSession, game: str, ranking_weights: Mapping[str, Any]
) -> Game:
    """Replace a game's weights and re-rank its players under the new weights.

    The weights are only stored if every player could be rescored.
    """
    weights = validate_weights(ranking_weights)
    row = await get_game(session, game)
    await recalculate_game_rankings(session, row, ranking_weights=weights)
    logger.info("Updated ranking weights for game %s", row.slug)
    return row


async def set_game_active(session: AsyncSession, game: str, active: bool) -> Game:
    row = await get_game(session, game)
    row.is_active = active
    row.updated_at = utcnow()
    await session.commit()
    return row


def validate_stat(game: Game, name: str, value: Any) -> None:
    """Check one custom stat against the game's declared field, if any."""
    validate_stat_value(game.stat_schema or {}, name, value)


def validate_custom_stats(game: Game, custom_stats: Mapping[str, Any]) -> None:
    for name, value in (custom_stats or {}).items():
        validate_stat(game, name, value)
