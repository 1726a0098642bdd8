from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..schemas import GameCreate, GameOut, GameWeightsUpdate
from ..services import games as game_service

# Resource-only prefix; no /api or /api/v0 here
router = APIRouter(prefix="/games", tags=["games"])


# GET /api/v0/games?activeOnly=true
@router.get("", response_model=List[GameOut])
async def list_games(
    activeOnly: bool = False,
    session: AsyncSession = Depends(get_session),
):
    rows = await game_service.list_games(session, active_only=activeOnly)
    return [GameOut.from_model(g) for g in rows]


@router.post("", response_model=GameOut, status_code=201)
async def create_game(body: GameCreate, session: AsyncSession = Depends(get_session)):
    game = await game_service.create_game(
        session,
        name=body.name,
        slug=body.slug,
        ranking_weights=body.rankingWeights,
        stat_schema={
            name: field.model_dump(exclude_none=True)
            for name, field in body.statSchema.items()
        },
        description=body.description,
        platform_id_format=body.platformIdFormat,
    )
    return GameOut.from_model(game)


# GET /api/v0/games/warzone (id or slug)
@router.get("/{game}", response_model=GameOut)
async def get_game(game: str, session: AsyncSession = Depends(get_session)):
    return GameOut.from_model(await game_service.get_game(session, game))


@router.put("/{game}/weights", response_model=GameOut)
async def update_weights(
    game: str,
    body: GameWeightsUpdate,
    session: AsyncSession = Depends(get_session),
):
    row = await game_service.update_game_weights(session, game, body.rankingWeights)
    return GameOut.from_model(row)


@router.post("/{game}/activate", response_model=GameOut)
async def activate_game(game: str, session: AsyncSession = Depends(get_session)):
    return GameOut.from_model(await game_service.set_game_active(session, game, True))


@router.post("/{game}/deactivate", response_model=GameOut)
async def deactivate_game(game: str, session: AsyncSession = Depends(get_session)):
    return GameOut.from_model(await game_service.set_game_active(session, game, False))
