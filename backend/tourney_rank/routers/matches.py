from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..rate_limit import limiter, match_submit_rate_limit
from ..schemas import MatchCreate, MatchListOut, MatchOut, MatchReview
from ..services import matches as match_service
from ..services.validation import clamp_page
from ..config import DEFAULT_MATCH_PAGE_SIZE

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post("", response_model=MatchOut, status_code=201)
@limiter.limit(match_submit_rate_limit)
async def submit_match(
    request: Request,
    body: MatchCreate,
    session: AsyncSession = Depends(get_session),
):
    match = await match_service.submit_match(
        session,
        tournament_id=body.tournamentId,
        team_id=body.teamId,
        game_id=body.gameId,
        team_placement=body.teamPlacement,
        team_kills=body.teamKills,
        player_stats=[ps.to_entry() for ps in body.playerStats],
        submitted_by=body.submittedBy,
        screenshot_url=body.screenshotUrl,
    )
    return MatchOut.from_model(match)


# GET /api/v0/matches?tournamentId=...&status=draft
@router.get("", response_model=MatchListOut)
async def list_matches(
    tournamentId: Optional[str] = None,
    teamId: Optional[str] = None,
    playerId: Optional[str] = None,
    status: Optional[Literal["draft", "verified", "rejected"]] = None,
    limit: int = Query(DEFAULT_MATCH_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    rows, total = await match_service.list_matches(
        session,
        tournament_id=tournamentId,
        team_id=teamId,
        player_id=playerId,
        status=status,
        limit=limit,
        offset=offset,
    )
    limit, offset = clamp_page(limit, offset, DEFAULT_MATCH_PAGE_SIZE)
    return MatchListOut(
        matches=[MatchOut.from_model(m) for m in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


# Declared before /{match_id} so "unverified" is not read as an id.
@router.get("/unverified", response_model=MatchListOut)
async def list_unverified(
    limit: int = Query(DEFAULT_MATCH_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    rows, total = await match_service.list_unverified_matches(
        session, limit=limit, offset=offset
    )
    limit, offset = clamp_page(limit, offset, DEFAULT_MATCH_PAGE_SIZE)
    return MatchListOut(
        matches=[MatchOut.from_model(m) for m in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{match_id}", response_model=MatchOut)
async def get_match(match_id: str, session: AsyncSession = Depends(get_session)):
    return MatchOut.from_model(await match_service.get_match(session, match_id))


@router.post("/{match_id}/verify", response_model=MatchOut)
async def review_match(
    match_id: str,
    body: MatchReview,
    session: AsyncSession = Depends(get_session),
):
    match = await match_service.review_match(
        session,
        match_id,
        body.adminId,
        approved=body.approved,
        reason=body.reason,
    )
    return MatchOut.from_model(match)
