"""Business logic services."""

from smashqueue.services.directory import DirectoryService, PlayerSort
from smashqueue.services.locks import WriteLocks, critical_section
from smashqueue.services.match import GameScoreInput, MatchHistoryItem, MatchService
from smashqueue.services.notifier import StateChange, StateEvent, StateNotifier
from smashqueue.services.queue import QueueInfo, QueueService, QueueUpdate, WaitingPosition
from smashqueue.services.stats import StatsService, StatsSnapshot, apply_outcome
from smashqueue.services.wait_policy import FixedMatchDurationPolicy, WaitPolicy, default_wait_policy

__all__ = [
    # Directory
    "DirectoryService",
    "PlayerSort",
    # Locks
    "WriteLocks",
    "critical_section",
    # Match
    "GameScoreInput",
    "MatchHistoryItem",
    "MatchService",
    # Notifications
    "StateChange",
    "StateEvent",
    "StateNotifier",
    # Queue
    "QueueInfo",
    "QueueService",
    "QueueUpdate",
    "WaitingPosition",
    # Stats
    "StatsService",
    "StatsSnapshot",
    "apply_outcome",
    # Wait policy
    "FixedMatchDurationPolicy",
    "WaitPolicy",
    "default_wait_policy",
]
