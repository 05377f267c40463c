"""Player model and its enumerations."""

from enum import Enum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from smashqueue.models.base import Base, IntIdMixin, TimestampMixin


class Role(str, Enum):
    """Permission level of a player account."""

    PLAYER = "player"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class HandPreference(str, Enum):
    """Dominant hand."""

    RIGHT = "right"
    LEFT = "left"


class SkillTier(str, Enum):
    """Admin-assigned skill tier, weakest first.

    Declaration order is the tier order: BG < S- < S < N < P- < P < P+ < C < B < A.
    """

    BG = "BG"
    S_MINUS = "S-"
    S = "S"
    N = "N"
    P_MINUS = "P-"
    P = "P"
    P_PLUS = "P+"
    C = "C"
    B = "B"
    A = "A"

    @property
    def rank(self) -> int:
        return SKILL_TIER_ORDER.index(self)

    @classmethod
    def values(cls) -> list[str]:
        return [tier.value for tier in SKILL_TIER_ORDER]


SKILL_TIER_ORDER: list[SkillTier] = list(SkillTier)


class SkillLevel(str, Enum):
    """Coarse level derived from win rate and experience."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class Player(Base, IntIdMixin, TimestampMixin):
    """Player account with denormalized match statistics."""

    __tablename__ = "players"

    # Profile
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)

    role: Mapped[str] = mapped_column(
        String(20),
        default=Role.PLAYER.value,
        nullable=False,
    )
    hand_preference: Mapped[str] = mapped_column(
        String(10),
        default=HandPreference.RIGHT.value,
        nullable=False,
    )
    skill_tier: Mapped[str] = mapped_column(
        String(5),
        default=SkillTier.N.value,
        nullable=False,
    )

    # Soft-disable; players are never deleted
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Stats (denormalized, mutated only by match completion)
    total_matches: Mapped[int] = mapped_column(default=0, nullable=False)
    wins: Mapped[int] = mapped_column(default=0, nullable=False)
    losses: Mapped[int] = mapped_column(default=0, nullable=False)
    current_streak: Mapped[int] = mapped_column(default=0, nullable=False)
    best_streak: Mapped[int] = mapped_column(default=0, nullable=False)
    skill_level: Mapped[str] = mapped_column(
        String(20),
        default=SkillLevel.BEGINNER.value,
        nullable=False,
    )
    skill_points: Mapped[int] = mapped_column(default=0, nullable=False)

    @property
    def win_rate(self) -> float:
        """Wins as a percentage of matches played (0 with no matches)."""
        if not self.total_matches:
            return 0.0
        return self.wins / self.total_matches * 100

    def __repr__(self) -> str:
        return f"<Player {self.id} {self.username}>"
