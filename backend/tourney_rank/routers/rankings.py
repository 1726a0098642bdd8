from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import PlayerStats
from ..schemas import RankingCalculate, RankingOut
from ..services.games import get_game
from ..services.ranking import ranking_service

router = APIRouter(prefix="/rankings", tags=["rankings"])


# POST /api/v0/rankings/calculate -- scores without persisting anything
@router.post("/calculate", response_model=RankingOut)
async def calculate(body: RankingCalculate, session: AsyncSession = Depends(get_session)):
    game = await get_game(session, body.gameId)
    stats = PlayerStats.new(player_id="", game_id=game.id)
    stats.stats = dict(body.stats)
    stats.matches_played = body.matchesPlayed
    calculator = ranking_service.registry.find(game.slug)
    result = ranking_service.calculate_ranking(stats, game)
    return RankingOut(
        gameId=game.id,
        calculator=calculator.name if calculator is not None else "",
        rankingScore=result.score,
        tier=result.tier.value,
    )
