from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_LEADERBOARD_SIZE
from ..db import get_session
from ..schemas import (
    LeaderboardEntryOut,
    LeaderboardOut,
    PercentileOut,
    PlayerRankOut,
    TierDistributionOut,
)
from ..services import leaderboard as leaderboard_service
from ..services.games import get_game
from ..services.validation import clamp_page

# Resource-only prefix; no /api or /api/v0 here
router = APIRouter(prefix="/leaderboards", tags=["leaderboards"])


def _entry_out(entry: leaderboard_service.LeaderboardEntry) -> LeaderboardEntryOut:
    return LeaderboardEntryOut(
        rank=entry.rank,
        playerId=entry.player_id,
        rankingScore=entry.ranking_score,
        tier=entry.tier,
        matchesPlayed=entry.matches_played,
        stats=entry.stats,
    )


# GET /api/v0/leaderboards/warzone?limit=50&offset=0
@router.get("/{game}", response_model=LeaderboardOut)
async def leaderboard(
    game: str,
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    row = await get_game(session, game)
    entries, total = await leaderboard_service.get_leaderboard(
        session, row.id, limit=limit, offset=offset
    )
    limit, offset = clamp_page(limit, offset, DEFAULT_LEADERBOARD_SIZE)
    return LeaderboardOut(
        gameId=row.id,
        gameName=row.name,
        entries=[_entry_out(e) for e in entries],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{game}/tiers", response_model=TierDistributionOut)
async def tier_distribution(game: str, session: AsyncSession = Depends(get_session)):
    row = await get_game(session, game)
    distribution = await leaderboard_service.get_tier_distribution(session, row.id)
    return TierDistributionOut(
        gameId=row.id,
        distribution=distribution,
        totalPlayers=sum(distribution.values()),
    )


@router.get("/{game}/tiers/{tier}", response_model=LeaderboardOut)
async def tier_leaderboard(
    game: str,
    tier: str,
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1),
    session: AsyncSession = Depends(get_session),
):
    row = await get_game(session, game)
    entries = await leaderboard_service.get_leaderboard_by_tier(
        session, row.id, tier, limit=limit
    )
    limit, _ = clamp_page(limit, 0, DEFAULT_LEADERBOARD_SIZE)
    return LeaderboardOut(
        gameId=row.id,
        gameName=row.name,
        entries=[_entry_out(e) for e in entries],
        total=len(entries),
        limit=limit,
        offset=0,
    )


@router.get("/{game}/players/{player_id}", response_model=PlayerRankOut)
async def player_rank(
    game: str, player_id: str, session: AsyncSession = Depends(get_session)
):
    row = await get_game(session, game)
    rank = await leaderboard_service.get_player_rank(session, player_id, row.id)
    return PlayerRankOut(
        playerId=rank.player_id,
        gameId=rank.game_id,
        rank=rank.rank,
        rankingScore=rank.ranking_score,
        tier=rank.tier,
        percentile=rank.percentile,
        percentileTier=rank.percentile_tier,
        totalPlayers=rank.total_players,
    )


# GET /api/v0/leaderboards/warzone/percentile?score=650
@router.get("/{game}/percentile", response_model=PercentileOut)
async def percentile(
    game: str,
    score: float = Query(...),
    session: AsyncSession = Depends(get_session),
):
    row = await get_game(session, game)
    value = await leaderboard_service.calculate_percentile(session, row.id, score)
    return PercentileOut(gameId=row.id, score=score, percentile=value)


@router.get("/{game}/top/{stat}", response_model=LeaderboardOut)
async def top_by_stat(
    game: str,
    stat: str,
    limit: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_session),
):
    row = await get_game(session, game)
    entries = await leaderboard_service.get_top_by_stat(session, row.id, stat, limit=limit)
    return LeaderboardOut(
        gameId=row.id,
        gameName=row.name,
        entries=[_entry_out(e) for e in entries],
        total=len(entries),
        limit=len(entries),
        offset=0,
    )
