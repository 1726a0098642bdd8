from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class ValidationError(DomainException):
    """Input rejected at construction time; nothing was applied."""

    def __init__(self, detail: str, *, code: str, title: str = "Validation failed") -> None:
        super().__init__(status_code=422, title=title, detail=detail, code=code)


class StateError(DomainException):
    """The target is not in a state that permits the requested transition."""

    def __init__(self, detail: str, *, code: str, title: str = "Invalid state") -> None:
        super().__init__(status_code=409, title=title, detail=detail, code=code)


class NotFound(DomainException):
    def __init__(self, detail: str, *, code: str, title: str = "Not found") -> None:
        super().__init__(status_code=404, title=title, detail=detail, code=code)


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------
class InvalidRankingWeights(ValidationError):
    def __init__(self, detail: str = "ranking weights must sum to 1.0") -> None:
        super().__init__(detail, code="invalid_ranking_weights")


class InvalidGameName(ValidationError):
    def __init__(self) -> None:
        super().__init__("game name cannot be empty", code="invalid_game_name")


class InvalidSlug(ValidationError):
    def __init__(self) -> None:
        super().__init__("game slug cannot be empty", code="invalid_game_slug")


class InvalidStatSchema(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, code="invalid_stat_schema")


class InvalidStatValue(ValidationError):
    def __init__(self, stat: str, detail: str) -> None:
        super().__init__(f"stat '{stat}' {detail}", code="invalid_stat_value")
        self.stat = stat


class InvalidPlacement(ValidationError):
    def __init__(self, placement: object) -> None:
        super().__init__(
            f"placement must be between 1 and 100 (got {placement!r})",
            code="invalid_placement",
        )


class InvalidKills(ValidationError):
    def __init__(self) -> None:
        super().__init__("kills cannot be negative", code="invalid_kills")


class MissingPlayerStats(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            "match must include stats for at least one player",
            code="missing_player_stats",
        )


class InvalidPlayerStats(ValidationError):
    def __init__(self, detail: str = "invalid player stats in match") -> None:
        super().__init__(detail, code="invalid_player_stats")


class InvalidStats(ValidationError):
    def __init__(self, detail: str = "invalid stats for ranking calculation") -> None:
        super().__init__(detail, code="invalid_stats")


class InvalidTier(ValidationError):
    def __init__(self, tier: object) -> None:
        super().__init__(f"invalid tier value: {tier!r}", code="invalid_tier")


# -----------------------------------------------------------------------------
# State
# -----------------------------------------------------------------------------
class MatchNotDraft(StateError):
    def __init__(self, match_id: str, status: str | None = None) -> None:
        detail = f"match '{match_id}' is not a draft"
        if status:
            detail += f" (status: {status})"
        super().__init__(detail, code="match_not_draft", title="Match not draft")
        self.match_id = match_id
        self.status = status


class GameAlreadyExists(StateError):
    def __init__(self, slug: str) -> None:
        super().__init__(
            f"game slug '{slug}' already exists",
            code="game_exists",
            title="Game exists",
        )


# -----------------------------------------------------------------------------
# Lookup
# -----------------------------------------------------------------------------
class GameNotFound(NotFound):
    def __init__(self, game: str) -> None:
        super().__init__(f"game '{game}' not found", code="game_not_found")


class MatchNotFound(NotFound):
    def __init__(self, match_id: str) -> None:
        super().__init__(f"match '{match_id}' not found", code="match_not_found")


class PlayerStatsNotFound(NotFound):
    def __init__(self, player_id: str, game_id: str) -> None:
        super().__init__(
            f"player '{player_id}' has no stats for game '{game_id}'",
            code="player_stats_not_found",
        )


# -----------------------------------------------------------------------------
# System
# -----------------------------------------------------------------------------
class UnsupportedGame(DomainException):
    """No calculator answered for a game; the registry lacks its fallback."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            status_code=500,
            title="Unsupported game",
            detail=f"no ranking calculator registered for game '{slug}'",
            code="unsupported_game",
        )


class StatsAggregationError(DomainException):
    def __init__(self, match_id: str, detail: str | None = None) -> None:
        super().__init__(
            status_code=503,
            title="Stats aggregation failed",
            detail=detail
            or f"player stats for match '{match_id}' could not be applied; retry later",
            code="stats_aggregation_failed",
        )
        self.match_id = match_id


class RankingRecalculationError(DomainException):
    def __init__(self, game: str) -> None:
        super().__init__(
            status_code=503,
            title="Ranking recalculation failed",
            detail=f"rankings for game '{game}' could not be recalculated; "
            "weights were left unchanged, retry later",
            code="ranking_recalculation_failed",
        )
        self.game = game
