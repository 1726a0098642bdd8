import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from tourney_rank.exceptions import (
    GameAlreadyExists,
    GameNotFound,
    InvalidGameName,
    InvalidRankingWeights,
    InvalidSlug,
    InvalidStatValue,
    RankingRecalculationError,
)
from tourney_rank.services import (
    get_game,
    list_games,
    set_game_active,
    update_game_weights,
    validate_stat,
    verify_match,
)
from tourney_rank.services import stats as stats_service
from tourney_rank.services.stats import require_player_stats

from helpers import WARZONE_WEIGHTS, make_match, make_warzone, player


@pytest.mark.anyio
async def test_create_and_lookup_by_id_or_slug(session_maker):
    async with session_maker() as session:
        game = await make_warzone(session, slug="  WarZone ")
        assert game.slug == "warzone"
        assert game.is_active
        assert (await get_game(session, game.id)).id == game.id
        assert (await get_game(session, "WARZONE")).id == game.id
        with pytest.raises(GameNotFound):
            await get_game(session, "apex")


@pytest.mark.anyio
async def test_create_rejects_bad_input(session_maker):
    async with session_maker() as session:
        with pytest.raises(InvalidGameName):
            await make_warzone(session, name="   ")
        with pytest.raises(InvalidSlug):
            await make_warzone(session, slug="")
        with pytest.raises(InvalidRankingWeights):
            await make_warzone(session, ranking_weights={"kd_ratio": 0.9})
        assert await list_games(session) == []


@pytest.mark.anyio
async def test_duplicate_slug_is_refused(session_maker):
    async with session_maker() as session:
        await make_warzone(session)
        with pytest.raises(GameAlreadyExists):
            await make_warzone(session, name="Warzone 2")


@pytest.mark.anyio
async def test_deactivated_games_are_filtered(session_maker):
    async with session_maker() as session:
        game = await make_warzone(session)
        await set_game_active(session, game.slug, False)
        assert await list_games(session, active_only=True) == []
        assert [g.slug for g in await list_games(session)] == ["warzone"]


@pytest.mark.anyio
async def test_weight_update_rescores_players(session_maker):
    async with session_maker() as session:
        game = await make_warzone(session)
        match = await make_match(
            session,
            game.id,
            [player("p1", kills=50, deaths=10, damage=6000)],
        )
        await verify_match(session, match.id, "admin-1")
        before = await require_player_stats(session, "p1", game.id)
        # one match: kd 100, avg kills capped 100, avg damage capped 100
        assert before.ranking_score == pytest.approx(970.0)

        with pytest.raises(InvalidRankingWeights):
            await update_game_weights(session, game.id, {"kd_ratio": 2.0})

        weights = dict(WARZONE_WEIGHTS, kd_ratio=0.10, consistency=0.40)
        await update_game_weights(session, "warzone", weights)

    async with session_maker() as session:
        after = await require_player_stats(session, "p1", game.id)
        assert after.ranking_score == pytest.approx((10 + 30 + 20 + 28) * 10)
        assert after.tier == "elite"


async def _seed_one_verified_player(session_maker):
    async with session_maker() as session:
        game = await make_warzone(session)
        game_id = game.id
        match = await make_match(
            session,
            game_id,
            [player("p1", kills=50, deaths=10, damage=6000)],
        )
        await verify_match(session, match.id, "admin-1")
    return game_id


@pytest.mark.anyio
async def test_failed_rerank_keeps_previous_weights(session_maker, monkeypatch):
    game_id = await _seed_one_verified_player(session_maker)

    async def broken_rescore(session, game, *, ranking=None):
        raise OperationalError("UPDATE player_stats", {}, Exception("disk I/O error"))

    monkeypatch.setattr(stats_service, "rescore_players", broken_rescore)
    async with session_maker() as session:
        with pytest.raises(RankingRecalculationError):
            await update_game_weights(session, game_id, {"kd_ratio": 1.0})

    async with session_maker() as session:
        game = await get_game(session, game_id)
        assert game.ranking_weights == WARZONE_WEIGHTS
        stats = await require_player_stats(session, "p1", game_id)
        assert stats.ranking_score == pytest.approx(970.0)


@pytest.mark.anyio
async def test_rerank_retries_after_concurrent_update(session_maker, monkeypatch):
    game_id = await _seed_one_verified_player(session_maker)
    real_rescore = stats_service.rescore_players
    seen_weights = []

    async def flaky_rescore(session, game, *, ranking=None):
        seen_weights.append(dict(game.ranking_weights))
        if len(seen_weights) == 1:
            raise StaleDataError("player_stats row changed underneath")
        return await real_rescore(session, game, ranking=ranking)

    monkeypatch.setattr(stats_service, "rescore_players", flaky_rescore)
    weights = dict(WARZONE_WEIGHTS, kd_ratio=0.10, consistency=0.40)
    async with session_maker() as session:
        row = await update_game_weights(session, game_id, weights)
        assert row.ranking_weights == weights

    assert seen_weights == [weights, weights]
    async with session_maker() as session:
        assert (await get_game(session, game_id)).ranking_weights == weights
        stats = await require_player_stats(session, "p1", game_id)
        assert stats.ranking_score == pytest.approx(880.0)
        assert stats.tier == "elite"


@pytest.mark.anyio
async def test_validate_stat_uses_game_schema(session_maker):
    async with session_maker() as session:
        game = await make_warzone(session)
        validate_stat(game, "revives", 3)
        validate_stat(game, "undeclared", "anything")
        with pytest.raises(InvalidStatValue):
            validate_stat(game, "revives", -2)
