"""Player statistics aggregation.

Completing a match is the only thing that mutates player stats. Each
(match, player) pair is applied at most once, guarded by a ``StatsLedger``
row inserted in the same transaction as the stats update.
"""

from dataclasses import dataclass, replace

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.logging_config import get_logger
from smashqueue.models.match import Match, MatchParticipant, MatchStatus, Outcome, StatsLedger
from smashqueue.models.player import Player, SkillLevel
from smashqueue.services.locks import WriteLocks, critical_section
from smashqueue.utils.errors import (
    DuplicateStatsUpdateError,
    PlayerNotFoundError,
    storage_errors,
)

logger = get_logger(__name__)

# Below this many matches everyone is a Beginner
MIN_MATCHES_FOR_LEVEL = 5


@dataclass(frozen=True)
class StatsSnapshot:
    """Aggregate stats for one player."""

    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    current_streak: int = 0
    best_streak: int = 0

    @classmethod
    def from_player(cls, player: Player) -> "StatsSnapshot":
        return cls(
            total_matches=player.total_matches,
            wins=player.wins,
            losses=player.losses,
            current_streak=player.current_streak,
            best_streak=player.best_streak,
        )

    @property
    def win_rate(self) -> float:
        return compute_win_rate(self.wins, self.total_matches)

    @property
    def skill_level(self) -> SkillLevel:
        return compute_skill_level(self.total_matches, self.wins)

    @property
    def skill_points(self) -> int:
        return compute_skill_points(self.total_matches, self.wins)

    def write_to(self, player: Player) -> None:
        player.total_matches = self.total_matches
        player.wins = self.wins
        player.losses = self.losses
        player.current_streak = self.current_streak
        player.best_streak = self.best_streak
        player.skill_level = self.skill_level.value
        player.skill_points = self.skill_points


def compute_win_rate(wins: int, total_matches: int) -> float:
    """Wins as a percentage, 0 with no matches."""
    if total_matches <= 0:
        return 0.0
    return wins / total_matches * 100


def compute_skill_level(total_matches: int, wins: int) -> SkillLevel:
    """Coarse level from win rate, once the player has enough matches."""
    if total_matches < MIN_MATCHES_FOR_LEVEL:
        return SkillLevel.BEGINNER
    rate = compute_win_rate(wins, total_matches)
    if rate >= 75:
        return SkillLevel.EXPERT
    if rate >= 55:
        return SkillLevel.ADVANCED
    if rate >= 40:
        return SkillLevel.INTERMEDIATE
    return SkillLevel.BEGINNER


def compute_skill_points(total_matches: int, wins: int) -> int:
    return total_matches * 10 + wins * 5


def apply_outcome(stats: StatsSnapshot, outcome: Outcome) -> StatsSnapshot:
    """Fold one match outcome into a stats snapshot.

    The streak is signed: positive counts consecutive wins, negative
    consecutive losses. A draw resets it to 0.
    """
    total = stats.total_matches + 1

    if outcome == Outcome.WIN:
        streak = stats.current_streak + 1 if stats.current_streak >= 0 else 1
        return replace(
            stats,
            total_matches=total,
            wins=stats.wins + 1,
            current_streak=streak,
            best_streak=max(stats.best_streak, streak),
        )

    if outcome == Outcome.LOSS:
        streak = stats.current_streak - 1 if stats.current_streak <= 0 else -1
        return replace(
            stats,
            total_matches=total,
            losses=stats.losses + 1,
            current_streak=streak,
        )

    return replace(stats, total_matches=total, current_streak=0)


def replay(outcomes: list[Outcome]) -> StatsSnapshot:
    """Stats after a sequence of outcomes, oldest first."""
    stats = StatsSnapshot()
    for outcome in outcomes:
        stats = apply_outcome(stats, outcome)
    return stats


class StatsService:
    """Service for applying match outcomes to player stats."""

    def __init__(self, db: AsyncSession, locks: WriteLocks | None = None):
        self.db = db
        self.locks = locks

    async def apply_match_result(
        self,
        match_id: int,
        player_id: int,
        outcome: Outcome,
    ) -> StatsSnapshot:
        """Apply one player's outcome for a match.

        Runs inside the caller's transaction; the caller commits.

        Raises:
            DuplicateStatsUpdateError: Stats for this pair were already applied
            PlayerNotFoundError: Unknown player
        """
        async with storage_errors():
            existing = await self.db.execute(
                select(StatsLedger.id).where(
                    StatsLedger.match_id == match_id,
                    StatsLedger.player_id == player_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateStatsUpdateError(match_id, player_id)

            player = await self.db.get(Player, player_id)
            if player is None:
                raise PlayerNotFoundError(player_id)

            self.db.add(
                StatsLedger(
                    match_id=match_id,
                    player_id=player_id,
                    outcome=outcome.value,
                )
            )
            try:
                await self.db.flush()
            except IntegrityError as e:
                raise DuplicateStatsUpdateError(match_id, player_id) from e

            stats = apply_outcome(StatsSnapshot.from_player(player), outcome)
            stats.write_to(player)
            await self.db.flush()

        logger.info(
            "stats_applied",
            match_id=match_id,
            player_id=player_id,
            outcome=outcome.value,
            total_matches=stats.total_matches,
            current_streak=stats.current_streak,
        )
        return stats

    async def recompute(self, player_id: int) -> Player:
        """Rebuild a player's aggregate from their completed matches.

        Used to repair stats; commits the result.
        """
        locks = (self.locks.match,) if self.locks is not None else ()
        async with critical_section(self.db, *locks):
            player = await self.db.get(Player, player_id)
            if player is None:
                raise PlayerNotFoundError(player_id)

            result = await self.db.execute(
                select(Match)
                .join(MatchParticipant, MatchParticipant.match_id == Match.id)
                .where(
                    MatchParticipant.player_id == player_id,
                    Match.status == MatchStatus.COMPLETED.value,
                )
                .order_by(Match.ended_at.asc(), Match.id.asc())
            )
            matches = list(result.scalars().all())
            outcomes = [m.outcome_for(player_id) for m in matches]
            stats = replay([o for o in outcomes if o is not None])

            previous = StatsSnapshot.from_player(player)
            stats.write_to(player)
            await self.db.commit()

        logger.info(
            "stats_recomputed",
            player_id=player_id,
            matches=len(matches),
            changed=previous != stats,
        )
        return player
