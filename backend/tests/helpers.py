from tourney_rank.services import create_game, submit_match

WARZONE_WEIGHTS = {
    "kd_ratio": 0.40,
    "avg_kills": 0.30,
    "avg_damage": 0.20,
    "consistency": 0.10,
}


async def make_warzone(session, **overrides):
    kwargs = dict(
        name="Call of Duty: Warzone",
        slug="warzone",
        ranking_weights=WARZONE_WEIGHTS,
        stat_schema={"revives": {"type": "integer", "min": 0}},
    )
    kwargs.update(overrides)
    return await create_game(session, **kwargs)


async def make_generic(session, slug="valorant"):
    return await create_game(
        session,
        name=slug.title(),
        slug=slug,
        ranking_weights={"kd_ratio": 1.0},
    )


def player(player_id, kills=0, deaths=0, damage=0, **extra):
    return {"player_id": player_id, "kills": kills, "deaths": deaths, "damage": damage, **extra}


async def make_match(session, game_id, players, *, team_id="team-1", placement=1, team_kills=None):
    if team_kills is None:
        team_kills = sum(p.get("kills", 0) for p in players)
    return await submit_match(
        session,
        tournament_id="cup-1",
        team_id=team_id,
        game_id=game_id,
        team_placement=placement,
        team_kills=team_kills,
        player_stats=players,
        submitted_by="captain-1",
    )
