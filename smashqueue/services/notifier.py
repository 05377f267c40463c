"""State-change notifications for clients.

Events are published on a Redis pub/sub channel when Redis is configured;
otherwise they are only logged and clients poll ``GET /queue``. Events are
sent after the change is committed, so a failed publish never undoes it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from smashqueue.logging_config import get_logger
from smashqueue.models.base import utcnow
from smashqueue.utils.json_utils import json_dumps

logger = get_logger(__name__)


class StateEvent(str, Enum):
    """Change event types."""

    QUEUE_JOINED = "queue_joined"
    QUEUE_LEFT = "queue_left"
    QUEUE_CALLED = "queue_called"
    MATCH_CREATED = "match_created"
    MATCH_COMPLETED = "match_completed"
    PLAYER_UPDATED = "player_updated"


@dataclass
class StateChange:
    """One published change."""

    event: StateEvent
    data: dict[str, Any]
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.value,
            "data": self.data,
            "createdAt": self.created_at.isoformat(),
        }


class StateNotifier:
    """Publishes queue and match changes."""

    def __init__(self, redis: Redis | None = None, channel: str = "smashqueue:events"):
        self.redis = redis
        self.channel = channel

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    async def publish(self, event: StateEvent, **data: Any) -> StateChange:
        """Publish a change event.

        Returns:
            The change that was sent (or logged)
        """
        change = StateChange(event=event, data=data)

        if self.redis is None:
            logger.debug("state_change", state_event=event.value, **data)
            return change

        try:
            await self.redis.publish(self.channel, json_dumps(change.to_dict()))
        except RedisError as e:
            # Clients still converge by polling
            logger.warning(
                "state_change_publish_failed",
                state_event=event.value,
                error=str(e),
            )
        return change
