"""Queue entry model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smashqueue.models.base import Base, IntIdMixin, utcnow

if TYPE_CHECKING:
    from smashqueue.models.player import Player


class QueueStatus(str, Enum):
    """Queue entry status.

    waiting -> called -> consumed, or waiting/called -> left.
    """

    WAITING = "waiting"
    CALLED = "called"
    LEFT = "left"
    CONSUMED = "consumed"


ACTIVE_QUEUE_STATUSES = (QueueStatus.WAITING.value, QueueStatus.CALLED.value)


class QueueEntry(Base, IntIdMixin):
    """A player's marker in the shared waiting line.

    ``id`` is assigned in insertion order and breaks ties between identical
    ``joined_at`` values.
    """

    __tablename__ = "queue_entries"

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=QueueStatus.WAITING.value,
        nullable=False,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    called_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    # Set when the entry is consumed by a match
    match_id: Mapped[int | None] = mapped_column(
        ForeignKey("matches.id"),
        nullable=True,
        index=True,
    )

    player: Mapped["Player"] = relationship("Player", lazy="selectin")

    __table_args__ = (
        Index("ix_queue_entries_status_joined", "status", "joined_at", "id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_QUEUE_STATUSES

    def __repr__(self) -> str:
        return f"<QueueEntry {self.id} player={self.player_id} {self.status}>"
