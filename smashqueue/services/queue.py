"""Shared court queue.

Positions are never stored: a waiting player's position is their 1-based
rank by ``(joined_at, id)`` among waiting entries, recomputed on every read.
"""

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.config import get_settings
from smashqueue.logging_config import get_logger
from smashqueue.middleware.prometheus import record_queue_event, update_queue_waiting
from smashqueue.models.base import utcnow
from smashqueue.models.match import Match, MatchStatus
from smashqueue.models.player import Player
from smashqueue.models.queue import ACTIVE_QUEUE_STATUSES, QueueEntry, QueueStatus
from smashqueue.services.locks import WriteLocks, critical_section
from smashqueue.services.notifier import StateEvent, StateNotifier
from smashqueue.services.wait_policy import WaitPolicy, default_wait_policy, format_wait
from smashqueue.utils.errors import (
    AlreadyQueuedError,
    InsufficientPlayersError,
    NotQueuedError,
    PlayerNotFoundError,
    ValidationError,
    storage_errors,
)
from smashqueue.utils.retry import retry_read

logger = get_logger(__name__)


@dataclass
class WaitingPosition:
    """A waiting entry with its computed position."""

    entry: QueueEntry
    position: int


@dataclass
class QueueInfo:
    """Queue snapshot, optionally from one player's point of view."""

    total_in_queue: int
    your_position: int | None = None
    your_status: str | None = None
    estimated_wait: str | None = None
    estimated_wait_minutes: int | None = None
    next_court: str | None = None
    currently_playing: list[QueueEntry] = field(default_factory=list)


@dataclass
class QueueUpdate:
    """Result of a join or leave."""

    entry: QueueEntry
    info: QueueInfo


class QueueService:
    """Service for the single shared waiting line."""

    def __init__(
        self,
        db: AsyncSession,
        locks: WriteLocks,
        notifier: StateNotifier | None = None,
        wait_policy: WaitPolicy | None = None,
    ):
        self.db = db
        self.locks = locks
        self.notifier = notifier or StateNotifier()
        self.wait_policy = wait_policy or default_wait_policy()
        self.settings = get_settings()

    # =========================================================================
    # Queries
    # =========================================================================

    async def _active_entry(self, player_id: int) -> QueueEntry | None:
        result = await self.db.execute(
            select(QueueEntry)
            .where(
                QueueEntry.player_id == player_id,
                QueueEntry.status.in_(ACTIVE_QUEUE_STATUSES),
            )
            .order_by(QueueEntry.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _waiting_entries(self) -> list[QueueEntry]:
        result = await self.db.execute(
            select(QueueEntry)
            .where(QueueEntry.status == QueueStatus.WAITING.value)
            .order_by(QueueEntry.joined_at.asc(), QueueEntry.id.asc())
        )
        return list(result.scalars().all())

    async def _currently_playing(self) -> list[QueueEntry]:
        """Entries consumed into matches that are still on court."""
        result = await self.db.execute(
            select(QueueEntry)
            .join(Match, Match.id == QueueEntry.match_id)
            .where(
                QueueEntry.status == QueueStatus.CONSUMED.value,
                Match.status == MatchStatus.ACTIVE.value,
            )
            .order_by(QueueEntry.closed_at.desc(), QueueEntry.id.desc())
            .limit(self.settings.currently_playing_limit)
        )
        return list(result.scalars().all())

    async def _next_court(self) -> str | None:
        """First configured court without an active match."""
        result = await self.db.execute(
            select(Match.court).where(Match.status == MatchStatus.ACTIVE.value)
        )
        busy = set(result.scalars().all())
        for court in self.settings.court_list:
            if court not in busy:
                return court
        return None

    @retry_read
    async def status(self, player_id: int | None = None) -> QueueInfo:
        """Queue snapshot; includes position and wait for a waiting player."""
        async with storage_errors(self.db):
            waiting = await self._waiting_entries()
            update_queue_waiting(len(waiting))
            info = QueueInfo(
                total_in_queue=len(waiting),
                next_court=await self._next_court(),
                currently_playing=await self._currently_playing(),
            )

            if player_id is None:
                return info

            for position, entry in enumerate(waiting, start=1):
                if entry.player_id == player_id:
                    minutes = self.wait_policy(position)
                    info.your_position = position
                    info.your_status = QueueStatus.WAITING.value
                    info.estimated_wait_minutes = minutes
                    info.estimated_wait = format_wait(minutes)
                    return info

            entry = await self._active_entry(player_id)
            if entry is not None:
                info.your_status = entry.status
            return info

    @retry_read
    async def list_waiting(self) -> list[WaitingPosition]:
        """Waiting entries in call order, with positions."""
        async with storage_errors(self.db):
            waiting = await self._waiting_entries()
        return [
            WaitingPosition(entry=entry, position=position)
            for position, entry in enumerate(waiting, start=1)
        ]

    # =========================================================================
    # Mutations
    # =========================================================================

    async def join(self, player_id: int) -> QueueUpdate:
        """Append a player to the end of the waiting line.

        Raises:
            PlayerNotFoundError: Unknown or disabled player
            AlreadyQueuedError: Player already has a waiting or called entry
        """
        async with critical_section(self.db, self.locks.queue):
            player = await self.db.get(Player, player_id)
            if player is None or not player.is_active:
                raise PlayerNotFoundError(player_id)

            if await self._active_entry(player_id) is not None:
                raise AlreadyQueuedError(player_id)

            entry = QueueEntry(
                player_id=player_id,
                player=player,
                status=QueueStatus.WAITING.value,
                joined_at=utcnow(),
            )
            self.db.add(entry)
            await self.db.commit()

        logger.info("queue_joined", player_id=player_id, entry_id=entry.id)
        record_queue_event("joined")
        await self.notifier.publish(StateEvent.QUEUE_JOINED, player_id=player_id)

        return QueueUpdate(entry=entry, info=await self.status(player_id))

    async def leave(self, player_id: int) -> QueueUpdate:
        """Close a player's active entry. Later players move up by one.

        Raises:
            NotQueuedError: Player has no waiting or called entry
        """
        async with critical_section(self.db, self.locks.queue):
            entry = await self._active_entry(player_id)
            if entry is None:
                raise NotQueuedError(player_id)

            previous_status = entry.status
            entry.status = QueueStatus.LEFT.value
            entry.closed_at = utcnow()
            await self.db.commit()

        logger.info(
            "queue_left",
            player_id=player_id,
            entry_id=entry.id,
            previous_status=previous_status,
        )
        record_queue_event("left")
        await self.notifier.publish(StateEvent.QUEUE_LEFT, player_id=player_id)

        return QueueUpdate(entry=entry, info=await self.status(player_id))

    async def call_next(self, count: int | None = None) -> list[QueueEntry]:
        """Mark the ``count`` longest-waiting entries as called.

        Either all ``count`` entries are called or none are.

        Raises:
            ValidationError: ``count`` below 1
            InsufficientPlayersError: Fewer than ``count`` players waiting
        """
        if count is None:
            count = self.settings.call_next_default
        if count < 1:
            raise ValidationError(
                "count must be at least 1",
                details={"count": count},
            )

        async with critical_section(self.db, self.locks.queue):
            waiting = await self._waiting_entries()
            if len(waiting) < count:
                raise InsufficientPlayersError(len(waiting), count)

            called = waiting[:count]
            now = utcnow()
            for entry in called:
                entry.status = QueueStatus.CALLED.value
                entry.called_at = now
            await self.db.commit()

        player_ids = [entry.player_id for entry in called]
        logger.info("queue_called", count=count, player_ids=player_ids)
        record_queue_event("called")
        await self.notifier.publish(StateEvent.QUEUE_CALLED, player_ids=player_ids)

        return called

    async def consume_for_match(self, player_ids: list[int], match_id: int) -> list[QueueEntry]:
        """Close the active entries of players who were put on court.

        The caller must hold ``locks.queue`` and commits the transaction.
        """
        result = await self.db.execute(
            select(QueueEntry).where(
                QueueEntry.player_id.in_(player_ids),
                QueueEntry.status.in_(ACTIVE_QUEUE_STATUSES),
            )
        )
        entries = list(result.scalars().all())
        now = utcnow()
        for entry in entries:
            entry.status = QueueStatus.CONSUMED.value
            entry.closed_at = now
            entry.match_id = match_id
        await self.db.flush()

        if entries:
            logger.debug(
                "queue_consumed",
                match_id=match_id,
                player_ids=[entry.player_id for entry in entries],
            )
        return entries
