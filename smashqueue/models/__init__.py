"""Database models."""

from smashqueue.models.base import Base, IntIdMixin, TimestampMixin, utcnow
from smashqueue.models.match import (
    GameScore,
    Match,
    MatchParticipant,
    MatchResult,
    MatchStatus,
    Outcome,
    StatsLedger,
)
from smashqueue.models.player import (
    SKILL_TIER_ORDER,
    HandPreference,
    Player,
    Role,
    SkillLevel,
    SkillTier,
)
from smashqueue.models.queue import ACTIVE_QUEUE_STATUSES, QueueEntry, QueueStatus

__all__ = [
    # Base
    "Base",
    "IntIdMixin",
    "TimestampMixin",
    "utcnow",
    # Player
    "Player",
    "Role",
    "HandPreference",
    "SkillTier",
    "SkillLevel",
    "SKILL_TIER_ORDER",
    # Queue
    "QueueEntry",
    "QueueStatus",
    "ACTIVE_QUEUE_STATUSES",
    # Match
    "Match",
    "MatchParticipant",
    "GameScore",
    "StatsLedger",
    "MatchStatus",
    "MatchResult",
    "Outcome",
]
