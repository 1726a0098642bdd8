"""Internal application services."""

from .validation import validate_weights, validate_stat_schema, validate_stat_value
from .ranking import RankingResult, RankingService, calculate_ranking, ranking_service
from .stats import (
    apply_match_to_stats,
    get_or_create_player_stats,
    recalculate_game_rankings,
    rescore_players,
)
from .games import (
    create_game,
    get_game,
    list_games,
    set_game_active,
    update_game_weights,
    validate_stat,
)
from .matches import (
    get_match,
    list_matches,
    list_unverified_matches,
    reconcile_verified_matches,
    reject_match,
    review_match,
    submit_match,
    verify_match,
)
from .leaderboard import (
    calculate_percentile,
    get_leaderboard,
    get_leaderboard_by_tier,
    get_player_rank,
    get_tier_distribution,
    get_top_by_stat,
)

__all__ = [
    "validate_weights",
    "validate_stat_schema",
    "validate_stat_value",
    "RankingResult",
    "RankingService",
    "calculate_ranking",
    "ranking_service",
    "apply_match_to_stats",
    "get_or_create_player_stats",
    "recalculate_game_rankings",
    "rescore_players",
    "create_game",
    "get_game",
    "list_games",
    "set_game_active",
    "update_game_weights",
    "validate_stat",
    "get_match",
    "list_matches",
    "list_unverified_matches",
    "reconcile_verified_matches",
    "reject_match",
    "review_match",
    "submit_match",
    "verify_match",
    "calculate_percentile",
    "get_leaderboard",
    "get_leaderboard_by_tier",
    "get_player_rank",
    "get_tier_distribution",
    "get_top_by_stat",
]
