import math
import uuid
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Float,
    Boolean,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base
from .exceptions import (
    InvalidKills,
    InvalidPlacement,
    InvalidPlayerStats,
    InvalidStats,
    MatchNotDraft,
    MissingPlayerStats,
)
from .tiers import Tier, tier_for_score
from .time_utils import utcnow

MIN_PLACEMENT = 1
MAX_PLACEMENT = 100
PLAYER_COUNTERS = ("kills", "damage", "assists", "deaths", "downs")


def _new_id() -> str:
    return uuid.uuid4().hex


class Game(Base):
    __tablename__ = "game"
    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    stat_schema = Column(JSON, nullable=False, default=dict)
    ranking_weights = Column(JSON, nullable=False, default=dict)
    platform_id_format = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class PlayerStats(Base):
    """Per (player, game) aggregate of verified match results.

    ``ranking_score`` and ``tier`` are derived state: they are written only
    through :meth:`apply_ranking`, which refuses a tier that does not match
    the score.
    """

    __tablename__ = "player_stats"
    id = Column(String, primary_key=True, default=_new_id)
    player_id = Column(String, nullable=False)
    game_id = Column(String, ForeignKey("game.id"), nullable=False)
    stats = Column(JSON, nullable=False, default=dict)
    matches_played = Column(Integer, nullable=False, default=0)
    ranking_score = Column(Float, nullable=False, default=0.0)
    tier = Column(String, nullable=False, default=Tier.BEGINNER.value)
    last_match_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint(
            "player_id", "game_id", name="uq_player_stats_player_id_game_id"
        ),
        Index("ix_player_stats_game_score", "game_id", "ranking_score"),
    )

    @classmethod
    def new(cls, player_id: str, game_id: str) -> "PlayerStats":
        now = utcnow()
        return cls(
            id=_new_id(),
            player_id=player_id,
            game_id=game_id,
            stats={},
            matches_played=0,
            ranking_score=0.0,
            tier=Tier.BEGINNER.value,
            created_at=now,
            updated_at=now,
        )

    def stat_as_float(self, key: str) -> float:
        """Return a numeric counter, ``0.0`` when absent.

        Raises ``InvalidStats`` when the stored value is not a finite,
        non-negative number.
        """
        value = (self.stats or {}).get(key)
        if value is None:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidStats(f"stat '{key}' must be numeric (got {value!r})")
        if not math.isfinite(value) or value < 0:
            raise InvalidStats(f"stat '{key}' must be a non-negative number")
        return float(value)

    def kd_ratio(self) -> float:
        kills = self.stat_as_float("total_kills")
        deaths = self.stat_as_float("total_deaths")
        if deaths > 0:
            return kills / deaths
        return kills

    def apply_match(self, deltas: Mapping[str, Any], *, played_at=None) -> None:
        """Fold one verified match into the aggregate.

        Numeric values are added to the existing counters; anything else
        replaces the stored value.
        """
        stats = dict(self.stats or {})
        for key, value in deltas.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                current = stats.get(key, 0)
                if isinstance(current, bool) or not isinstance(current, (int, float)):
                    current = 0
                stats[key] = current + value
            else:
                stats[key] = value
        now = utcnow()
        self.stats = stats
        self.matches_played = (self.matches_played or 0) + 1
        self.last_match_at = played_at or now
        self.updated_at = now

    def apply_ranking(self, score: float, tier: Tier | str) -> None:
        tier = Tier.parse(tier)
        if tier is not tier_for_score(score):
            raise InvalidStats(
                f"tier '{tier.value}' does not match ranking score {score:.2f}"
            )
        self.ranking_score = float(score)
        self.tier = tier.value
        self.updated_at = utcnow()


class MatchStatus:
    DRAFT = "draft"
    VERIFIED = "verified"
    REJECTED = "rejected"


def _counter(entry: Mapping[str, Any], name: str) -> int:
    value = entry.get(name, 0)
    if value is None:
        value = 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPlayerStats(f"{name} must be an integer")
    if value < 0:
        raise InvalidPlayerStats(f"{name} cannot be negative")
    return value


def validate_match_fields(
    team_placement: Any,
    team_kills: Any,
    player_stats: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Validate a match submission and return normalized player entries.

    Rules:
    - ``team_placement`` must be an integer in [1, 100]
    - ``team_kills`` must be an integer >= 0
    - at least one player entry, each with a ``player_id``
    - every counter (kills, damage, assists, deaths, downs) >= 0
    - a player may appear only once
    """
    if (
        isinstance(team_placement, bool)
        or not isinstance(team_placement, int)
        or not MIN_PLACEMENT <= team_placement <= MAX_PLACEMENT
    ):
        raise InvalidPlacement(team_placement)
    if isinstance(team_kills, bool) or not isinstance(team_kills, int) or team_kills < 0:
        raise InvalidKills()

    entries = list(player_stats or [])
    if not entries:
        raise MissingPlayerStats()

    normalized: list[dict[str, Any]] = []
    seen: set[str] = set()
    for entry in entries:
        player_id = str(entry.get("player_id") or "").strip()
        if not player_id:
            raise InvalidPlayerStats("player_id is required for every entry")
        if player_id in seen:
            raise InvalidPlayerStats(f"player '{player_id}' appears more than once")
        seen.add(player_id)
        row = {"player_id": player_id}
        for name in PLAYER_COUNTERS:
            row[name] = _counter(entry, name)
        custom = entry.get("custom_stats") or {}
        if not isinstance(custom, Mapping):
            raise InvalidPlayerStats("custom_stats must be an object")
        row["custom_stats"] = dict(custom)
        normalized.append(row)
    return normalized


class Match(Base):
    """A team's submitted result, gated by admin verification.

    Status moves once, from ``draft`` to ``verified`` or ``rejected``.
    """

    __tablename__ = "match"
    id = Column(String, primary_key=True, default=_new_id)
    tournament_id = Column(String, nullable=False)
    team_id = Column(String, nullable=False)
    game_id = Column(String, ForeignKey("game.id"), nullable=False)
    status = Column(String, nullable=False, default=MatchStatus.DRAFT)
    team_placement = Column(Integer, nullable=False)
    team_kills = Column(Integer, nullable=False, default=0)
    screenshot_url = Column(String, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    submitted_by = Column(String, nullable=False)
    verified_by = Column(String, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    stats_applied_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    player_stats = relationship(
        "MatchPlayerStat",
        cascade="all, delete-orphan",
        order_by="MatchPlayerStat.position",
        lazy="selectin",
        back_populates="match",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_match_status_created", "status", "created_at"),
        Index("ix_match_tournament", "tournament_id"),
        Index("ix_match_team", "team_id"),
    )

    @classmethod
    def create(
        cls,
        *,
        tournament_id: str,
        team_id: str,
        game_id: str,
        team_placement: int,
        team_kills: int,
        player_stats: Iterable[Mapping[str, Any]],
        submitted_by: str,
        screenshot_url: Optional[str] = None,
    ) -> "Match":
        entries = validate_match_fields(team_placement, team_kills, player_stats)
        now = utcnow()
        match = cls(
            id=_new_id(),
            tournament_id=tournament_id,
            team_id=team_id,
            game_id=game_id,
            status=MatchStatus.DRAFT,
            team_placement=team_placement,
            team_kills=team_kills,
            screenshot_url=screenshot_url,
            submitted_by=submitted_by,
            created_at=now,
            updated_at=now,
        )
        match.player_stats = [
            MatchPlayerStat(id=_new_id(), position=i, **entry)
            for i, entry in enumerate(entries)
        ]
        return match

    @property
    def is_draft(self) -> bool:
        return self.status == MatchStatus.DRAFT

    @property
    def is_verified(self) -> bool:
        return self.status == MatchStatus.VERIFIED

    def verify(self, admin_id: str) -> None:
        if not self.is_draft:
            raise MatchNotDraft(self.id, self.status)
        now = utcnow()
        self.status = MatchStatus.VERIFIED
        self.verified_by = admin_id
        self.verified_at = now
        self.updated_at = now
        self.rejection_reason = None

    def reject(self, admin_id: str, reason: str) -> None:
        if not self.is_draft:
            raise MatchNotDraft(self.id, self.status)
        now = utcnow()
        self.status = MatchStatus.REJECTED
        self.verified_by = admin_id
        self.verified_at = now
        self.updated_at = now
        self.rejection_reason = reason

    def total_team_kills(self) -> int:
        return sum(ps.kills for ps in self.player_stats)

    def team_kd_ratio(self) -> float:
        deaths = sum(ps.deaths for ps in self.player_stats)
        if deaths == 0:
            return float(self.team_kills)
        return self.team_kills / deaths


class MatchPlayerStat(Base):
    __tablename__ = "match_player_stat"
    id = Column(String, primary_key=True, default=_new_id)
    match_id = Column(
        String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False
    )
    player_id = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    kills = Column(Integer, nullable=False, default=0)
    damage = Column(Integer, nullable=False, default=0)
    assists = Column(Integer, nullable=False, default=0)
    deaths = Column(Integer, nullable=False, default=0)
    downs = Column(Integer, nullable=False, default=0)
    custom_stats = Column(JSON, nullable=False, default=dict)

    match = relationship("Match", back_populates="player_stats")

    __table_args__ = (
        UniqueConstraint(
            "match_id", "player_id", name="uq_match_player_stat_match_id_player_id"
        ),
    )

    def deltas(self) -> dict[str, Any]:
        """Return the increments this entry contributes to the player's aggregate."""
        deltas: dict[str, Any] = {}
        for key, value in (self.custom_stats or {}).items():
            deltas[key] = value
        # Core counters always win over same-named custom stats.
        for name in PLAYER_COUNTERS:
            deltas[f"total_{name}"] = getattr(self, name) or 0
        return deltas
