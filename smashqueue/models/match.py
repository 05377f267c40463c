"""Match, GameScore, MatchParticipant and StatsLedger models."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smashqueue.models.base import Base, IntIdMixin, utcnow

if TYPE_CHECKING:
    from smashqueue.models.player import Player


class MatchStatus(str, Enum):
    """Match lifecycle state."""

    ACTIVE = "active"
    COMPLETED = "completed"


class MatchResult(str, Enum):
    """Match outcome."""

    PENDING = "pending"
    TEAM1 = "team1"
    TEAM2 = "team2"
    DRAW = "draw"


class Outcome(str, Enum):
    """A single player's outcome in a completed match."""

    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class Match(Base, IntIdMixin):
    """A singles or doubles match on one court."""

    __tablename__ = "matches"

    court: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=MatchStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    result: Mapped[str] = mapped_column(
        String(10),
        default=MatchResult.PENDING.value,
        nullable=False,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    # Set exactly once, at completion
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("players.id"),
        nullable=True,
    )

    participants: Mapped[list["MatchParticipant"]] = relationship(
        "MatchParticipant",
        back_populates="match",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="[MatchParticipant.team, MatchParticipant.slot]",
    )
    scores: Mapped[list["GameScore"]] = relationship(
        "GameScore",
        back_populates="match",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GameScore.game",
    )

    @property
    def team1(self) -> list[int]:
        return [p.player_id for p in self.participants if p.team == 1]

    @property
    def team2(self) -> list[int]:
        return [p.player_id for p in self.participants if p.team == 2]

    @property
    def player_ids(self) -> list[int]:
        return self.team1 + self.team2

    def team_of(self, player_id: int) -> int | None:
        for participant in self.participants:
            if participant.player_id == player_id:
                return participant.team
        return None

    def outcome_for(self, player_id: int) -> Outcome | None:
        """Outcome from one player's side, None while pending."""
        team = self.team_of(player_id)
        if team is None or self.result == MatchResult.PENDING.value:
            return None
        if self.result == MatchResult.DRAW.value:
            return Outcome.DRAW
        won = self.result == (MatchResult.TEAM1.value if team == 1 else MatchResult.TEAM2.value)
        return Outcome.WIN if won else Outcome.LOSS

    def __repr__(self) -> str:
        return f"<Match {self.id} {self.court} {self.status}/{self.result}>"


class MatchParticipant(Base, IntIdMixin):
    """One player's seat on a team, in listed order."""

    __tablename__ = "match_participants"

    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id"),
        nullable=False,
        index=True,
    )
    team: Mapped[int] = mapped_column(nullable=False)
    slot: Mapped[int] = mapped_column(nullable=False)

    match: Mapped["Match"] = relationship("Match", back_populates="participants")
    player: Mapped["Player"] = relationship("Player", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_participant"),
    )


class GameScore(Base, IntIdMixin):
    """Points scored by each team in one game of a match."""

    __tablename__ = "game_scores"

    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    game: Mapped[int] = mapped_column(nullable=False)
    team1_score: Mapped[int] = mapped_column(nullable=False)
    team2_score: Mapped[int] = mapped_column(nullable=False)

    match: Mapped["Match"] = relationship("Match", back_populates="scores")

    __table_args__ = (
        UniqueConstraint("match_id", "game", name="uq_game_score_match_game"),
    )


class StatsLedger(Base, IntIdMixin):
    """Idempotency key: stats for (match, player) were applied."""

    __tablename__ = "stats_ledger"

    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id"),
        nullable=False,
        index=True,
    )
    outcome: Mapped[str] = mapped_column(String(10), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_stats_ledger_match_player"),
    )
