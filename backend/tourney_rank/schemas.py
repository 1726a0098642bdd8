from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, ConfigDict

from .models import Game, Match
from .time_utils import coerce_utc


def _require_trimmed(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_name} must not be empty")
    return trimmed


class StatFieldIn(BaseModel):
    type: Literal["integer", "float", "string"]
    min: Optional[float] = None
    max: Optional[float] = None
    label: Optional[str] = None


class GameCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    statSchema: Dict[str, StatFieldIn] = Field(default_factory=dict)
    rankingWeights: Dict[str, float]
    platformIdFormat: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class GameWeightsUpdate(BaseModel):
    rankingWeights: Dict[str, float]


class GameOut(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    statSchema: Dict[str, Any]
    rankingWeights: Dict[str, float]
    platformIdFormat: Optional[str] = None
    isActive: bool

    @classmethod
    def from_model(cls, game: Game) -> "GameOut":
        return cls(
            id=game.id,
            name=game.name,
            slug=game.slug,
            description=game.description,
            statSchema=game.stat_schema or {},
            rankingWeights=game.ranking_weights or {},
            platformIdFormat=game.platform_id_format,
            isActive=bool(game.is_active),
        )


class PlayerMatchStatsIn(BaseModel):
    playerId: str
    kills: int = 0
    damage: int = 0
    assists: int = 0
    deaths: int = 0
    downs: int = 0
    customStats: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("playerId", mode="before")
    @classmethod
    def _validate_player_id(cls, value: Any) -> str:
        return _require_trimmed(value, "playerId")

    def to_entry(self) -> Dict[str, Any]:
        return {
            "player_id": self.playerId,
            "kills": self.kills,
            "damage": self.damage,
            "assists": self.assists,
            "deaths": self.deaths,
            "downs": self.downs,
            "custom_stats": self.customStats,
        }


class MatchCreate(BaseModel):
    """Match report; counters and placement are range-checked by the domain."""

    tournamentId: str
    teamId: str
    gameId: str
    teamPlacement: int
    teamKills: int = 0
    playerStats: List[PlayerMatchStatsIn]
    screenshotUrl: Optional[str] = None
    submittedBy: str

    @field_validator("tournamentId", "teamId", "gameId", "submittedBy", mode="before")
    @classmethod
    def _validate_ids(cls, value: Any, info) -> str:
        return _require_trimmed(value, info.field_name)


class MatchReview(BaseModel):
    adminId: str
    approved: bool
    reason: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("adminId", mode="before")
    @classmethod
    def _validate_admin(cls, value: Any) -> str:
        return _require_trimmed(value, "adminId")


class PlayerMatchStatsOut(BaseModel):
    playerId: str
    kills: int
    damage: int
    assists: int
    deaths: int
    downs: int
    customStats: Dict[str, Any]


class MatchOut(BaseModel):
    id: str
    tournamentId: str
    teamId: str
    gameId: str
    status: Literal["draft", "verified", "rejected"]
    teamPlacement: int
    teamKills: int
    totalTeamKills: int
    teamKdRatio: float
    playerStats: List[PlayerMatchStatsOut]
    screenshotUrl: Optional[str] = None
    rejectionReason: Optional[str] = None
    submittedBy: str
    createdAt: datetime
    updatedAt: datetime
    verifiedAt: Optional[datetime] = None
    verifiedBy: Optional[str] = None
    statsAppliedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, match: Match) -> "MatchOut":
        return cls(
            id=match.id,
            tournamentId=match.tournament_id,
            teamId=match.team_id,
            gameId=match.game_id,
            status=match.status,
            teamPlacement=match.team_placement,
            teamKills=match.team_kills,
            totalTeamKills=match.total_team_kills(),
            teamKdRatio=match.team_kd_ratio(),
            playerStats=[
                PlayerMatchStatsOut(
                    playerId=ps.player_id,
                    kills=ps.kills,
                    damage=ps.damage,
                    assists=ps.assists,
                    deaths=ps.deaths,
                    downs=ps.downs,
                    customStats=ps.custom_stats or {},
                )
                for ps in match.player_stats
            ],
            screenshotUrl=match.screenshot_url,
            rejectionReason=match.rejection_reason or None,
            submittedBy=match.submitted_by,
            createdAt=coerce_utc(match.created_at),
            updatedAt=coerce_utc(match.updated_at),
            verifiedAt=coerce_utc(match.verified_at),
            verifiedBy=match.verified_by,
            statsAppliedAt=coerce_utc(match.stats_applied_at),
        )


class MatchListOut(BaseModel):
    matches: List[MatchOut]
    total: int
    limit: int
    offset: int


class LeaderboardEntryOut(BaseModel):
    rank: int
    playerId: str
    rankingScore: float
    tier: str
    matchesPlayed: int
    stats: Dict[str, Any] = Field(default_factory=dict)


class LeaderboardOut(BaseModel):
    gameId: str
    gameName: str
    entries: List[LeaderboardEntryOut]
    total: int
    limit: int
    offset: int


class TierDistributionOut(BaseModel):
    gameId: str
    distribution: Dict[str, int]
    totalPlayers: int


class PlayerRankOut(BaseModel):
    playerId: str
    gameId: str
    rank: int
    rankingScore: float
    tier: str
    percentile: float
    percentileTier: str
    totalPlayers: int


class PercentileOut(BaseModel):
    gameId: str
    score: float
    percentile: float


class RankingCalculate(BaseModel):
    """Stateless scoring request: raw aggregate counters for one game."""

    gameId: str
    stats: Dict[str, float] = Field(default_factory=dict)
    matchesPlayed: int = Field(..., ge=0)


class RankingOut(BaseModel):
    gameId: str
    calculator: str
    rankingScore: float
    tier: str
