"""Match lifecycle: creation from two teams, scoring and completion.

A match is ``active`` from creation until its result is recorded, then
``completed`` for good. Completion writes the game scores, the result and
every participant's stats in one transaction.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.config import get_settings
from smashqueue.logging_config import get_logger
from smashqueue.middleware.prometheus import (
    record_match_completed,
    record_match_created,
    update_active_matches,
)
from smashqueue.models.base import as_utc, utcnow
from smashqueue.models.match import (
    GameScore,
    Match,
    MatchParticipant,
    MatchResult,
    MatchStatus,
    Outcome,
)
from smashqueue.models.player import Player
from smashqueue.services.locks import WriteLocks, critical_section
from smashqueue.services.notifier import StateEvent, StateNotifier
from smashqueue.services.queue import QueueService
from smashqueue.services.stats import StatsService
from smashqueue.utils.errors import (
    InvalidScoresError,
    InvalidTeamsError,
    MatchAlreadyCompletedError,
    MatchNotFoundError,
    PlayerInActiveMatchError,
    ValidationError,
    storage_errors,
)
from smashqueue.utils.retry import retry_read

logger = get_logger(__name__)

MAX_TEAM_SIZE = 2
MAX_GAMES = 3


@dataclass(frozen=True)
class GameScoreInput:
    """Points for one submitted game."""

    team1_score: int
    team2_score: int


@dataclass
class MatchHistoryItem:
    """A match from one player's point of view."""

    match: Match
    outcome: Outcome | None

    @property
    def won(self) -> bool:
        return self.outcome == Outcome.WIN


def validate_teams(team1: Sequence[int], team2: Sequence[int]) -> None:
    """Check team sizes and that no player is listed twice.

    Raises:
        InvalidTeamsError: Empty, oversized, duplicated or overlapping teams
    """
    for label, team in (("team1", team1), ("team2", team2)):
        if not team or len(team) > MAX_TEAM_SIZE:
            raise InvalidTeamsError(
                f"{label} must have 1 to {MAX_TEAM_SIZE} players",
                details={"team": label, "size": len(team)},
            )
        if len(set(team)) != len(team):
            raise InvalidTeamsError(
                f"{label} lists the same player twice",
                details={"team": label, "playerIds": list(team)},
            )

    overlap = sorted(set(team1) & set(team2))
    if overlap:
        raise InvalidTeamsError(
            "A player cannot be on both teams",
            details={"overlap": overlap},
        )


def validate_scores(scores: Sequence[GameScoreInput]) -> None:
    """Check game count and point values.

    Raises:
        InvalidScoresError: Wrong number of games or negative points
    """
    if not 1 <= len(scores) <= MAX_GAMES:
        raise InvalidScoresError(
            f"Submit between 1 and {MAX_GAMES} game scores",
            details={"games": len(scores)},
        )
    for game, score in enumerate(scores, start=1):
        if score.team1_score < 0 or score.team2_score < 0:
            raise InvalidScoresError(
                "Scores cannot be negative",
                details={
                    "game": game,
                    "team1Score": score.team1_score,
                    "team2Score": score.team2_score,
                },
            )


def decide_result(scores: Sequence[GameScoreInput]) -> MatchResult:
    """Team with more games won takes the match; equal games is a draw.

    A game goes to the side with strictly more points; a tied game counts
    for nobody.
    """
    team1_games = sum(1 for s in scores if s.team1_score > s.team2_score)
    team2_games = sum(1 for s in scores if s.team2_score > s.team1_score)
    if team1_games > team2_games:
        return MatchResult.TEAM1
    if team2_games > team1_games:
        return MatchResult.TEAM2
    return MatchResult.DRAW


class MatchService:
    """Service for creating, scoring and listing matches."""

    def __init__(
        self,
        db: AsyncSession,
        locks: WriteLocks,
        notifier: StateNotifier | None = None,
    ):
        self.db = db
        self.locks = locks
        self.notifier = notifier or StateNotifier()
        self.settings = get_settings()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_match(
        self,
        court: str,
        team1: Sequence[int],
        team2: Sequence[int],
        created_by: int | None = None,
    ) -> Match:
        """Put two teams on a court.

        Listed players' waiting or called queue entries are consumed.

        Raises:
            ValidationError: Empty court
            InvalidTeamsError: Bad team composition or unknown players
            PlayerInActiveMatchError: A listed player is already on court
        """
        court = (court or "").strip()
        if not court:
            raise ValidationError("court is required", details={"field": "court"})
        validate_teams(team1, team2)

        player_ids = [*team1, *team2]

        async with critical_section(self.db, self.locks.match, self.locks.queue):
            result = await self.db.execute(
                select(Player).where(Player.id.in_(player_ids))
            )
            players = {p.id: p for p in result.scalars().all()}
            unknown = [pid for pid in player_ids if pid not in players or not players[pid].is_active]
            if unknown:
                raise InvalidTeamsError(
                    "Unknown or inactive players",
                    details={"playerIds": unknown},
                )

            busy = await self._players_in_active_matches(player_ids)
            if busy:
                raise PlayerInActiveMatchError(busy)

            participants = [
                MatchParticipant(player_id=pid, player=players[pid], team=team, slot=slot)
                for team, members in ((1, team1), (2, team2))
                for slot, pid in enumerate(members)
            ]
            match = Match(
                court=court,
                status=MatchStatus.ACTIVE.value,
                result=MatchResult.PENDING.value,
                started_at=utcnow(),
                created_by=created_by,
                participants=participants,
                scores=[],
            )
            self.db.add(match)
            await self.db.flush()

            queue = QueueService(self.db, self.locks, self.notifier)
            consumed = await queue.consume_for_match(player_ids, match.id)

            await self.db.commit()

        logger.info(
            "match_created",
            match_id=match.id,
            court=court,
            team1=list(team1),
            team2=list(team2),
            consumed_entries=len(consumed),
            created_by=created_by,
        )
        record_match_created(len(team1), len(team2))
        await self.notifier.publish(
            StateEvent.MATCH_CREATED,
            match_id=match.id,
            court=court,
            player_ids=player_ids,
        )
        return match

    async def record_result(
        self,
        match_id: int,
        scores: Sequence[GameScoreInput],
    ) -> Match:
        """Record game scores, complete the match and apply stats.

        Result, ``ended_at`` and stats are written exactly once; a second
        submission is rejected and changes nothing.

        Raises:
            InvalidScoresError: Not 1-3 games, or negative points
            MatchNotFoundError: Unknown match
            MatchAlreadyCompletedError: Result already recorded
        """
        validate_scores(scores)

        async with critical_section(self.db, self.locks.match):
            result = await self.db.execute(
                select(Match)
                .where(Match.id == match_id)
                .execution_options(populate_existing=True)
            )
            match = result.scalar_one_or_none()
            if match is None:
                raise MatchNotFoundError(match_id)
            if match.status == MatchStatus.COMPLETED.value:
                raise MatchAlreadyCompletedError(match_id)

            outcome = decide_result(scores)
            match.scores = [
                GameScore(
                    game=game,
                    team1_score=score.team1_score,
                    team2_score=score.team2_score,
                )
                for game, score in enumerate(scores, start=1)
            ]
            match.result = outcome.value
            match.status = MatchStatus.COMPLETED.value
            match.ended_at = utcnow()
            await self.db.flush()

            stats = StatsService(self.db)
            for player_id in dict.fromkeys(match.player_ids):
                await stats.apply_match_result(
                    match.id,
                    player_id,
                    match.outcome_for(player_id),
                )

            await self.db.commit()

        duration = (match.ended_at - as_utc(match.started_at)).total_seconds()
        logger.info(
            "match_completed",
            match_id=match.id,
            result=match.result,
            games=len(scores),
            duration_seconds=round(duration, 1),
        )
        record_match_completed(match.result, duration)
        await self.notifier.publish(
            StateEvent.MATCH_COMPLETED,
            match_id=match.id,
            result=match.result,
        )
        return match

    # =========================================================================
    # Queries
    # =========================================================================

    async def _players_in_active_matches(self, player_ids: Sequence[int]) -> list[int]:
        result = await self.db.execute(
            select(MatchParticipant.player_id)
            .join(Match, Match.id == MatchParticipant.match_id)
            .where(
                Match.status == MatchStatus.ACTIVE.value,
                MatchParticipant.player_id.in_(player_ids),
            )
        )
        return sorted(set(result.scalars().all()))

    @retry_read
    async def get_match(self, match_id: int) -> Match:
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(Match)
                .where(Match.id == match_id)
                .execution_options(populate_existing=True)
            )
            match = result.scalar_one_or_none()
        if match is None:
            raise MatchNotFoundError(match_id)
        return match

    @retry_read
    async def list_active(self) -> list[Match]:
        """Matches on court, most recently started first."""
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(Match)
                .where(Match.status == MatchStatus.ACTIVE.value)
                .order_by(Match.started_at.desc(), Match.id.desc())
            )
            matches = list(result.scalars().all())
        update_active_matches(len(matches))
        return matches

    @retry_read
    async def list_completed(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[Match], int]:
        """Completed matches, most recently ended first.

        Returns:
            Tuple of (page of matches, total completed count)
        """
        if limit is None:
            limit = self.settings.completed_matches_limit_default
        if limit < 1 or offset < 0:
            raise ValidationError(
                "limit must be positive and offset non-negative",
                details={"limit": limit, "offset": offset},
            )

        async with storage_errors(self.db):
            total = await self.db.scalar(
                select(func.count(Match.id)).where(
                    Match.status == MatchStatus.COMPLETED.value
                )
            )
            result = await self.db.execute(
                select(Match)
                .where(Match.status == MatchStatus.COMPLETED.value)
                .order_by(Match.ended_at.desc(), Match.id.desc())
                .limit(limit)
                .offset(offset)
            )
            matches = list(result.scalars().all())
        return matches, total or 0

    @retry_read
    async def player_history(
        self,
        player_id: int,
        limit: int | None = None,
    ) -> list[MatchHistoryItem]:
        """A player's matches, newest first, with their outcome."""
        if limit is None:
            limit = self.settings.history_limit_default
        if limit < 1:
            raise ValidationError("limit must be positive", details={"limit": limit})

        async with storage_errors(self.db):
            result = await self.db.execute(
                select(Match)
                .join(MatchParticipant, MatchParticipant.match_id == Match.id)
                .where(MatchParticipant.player_id == player_id)
                .order_by(Match.started_at.desc(), Match.id.desc())
                .limit(limit)
            )
            matches = list(result.scalars().all())
        return [
            MatchHistoryItem(match=match, outcome=match.outcome_for(player_id))
            for match in matches
        ]

