"""Tests for stats aggregation and the once-per-match guarantee."""

import pytest

from smashqueue.models import Outcome, SkillLevel
from smashqueue.services.match import GameScoreInput
from smashqueue.services.stats import (
    StatsSnapshot,
    apply_outcome,
    compute_skill_level,
    compute_skill_points,
    compute_win_rate,
    replay,
)
from smashqueue.utils.errors import DuplicateStatsUpdateError, PlayerNotFoundError

W, L, D = Outcome.WIN, Outcome.LOSS, Outcome.DRAW


class TestApplyOutcome:
    """Tests for the pure stats fold"""

    def test_wins_and_losses_counted(self):
        stats = replay([W, W, L])

        assert stats.total_matches == 3
        assert stats.wins == 2
        assert stats.losses == 1
        assert round(stats.win_rate, 1) == 66.7

    def test_win_after_loss_restarts_streak(self):
        stats = replay([W, W, L, W])

        assert stats.current_streak == 1
        assert stats.best_streak == 2

    def test_losing_streak_is_negative(self):
        assert replay([L, L]).current_streak == -2
        assert replay([W, L, L, L]).current_streak == -3

    def test_draw_resets_streak(self):
        stats = replay([W, W, D])

        assert stats.current_streak == 0
        assert stats.best_streak == 2
        assert stats.total_matches == 3
        assert stats.wins == 2
        assert stats.losses == 0

    def test_best_streak_never_decreases(self):
        stats = StatsSnapshot()
        best = 0
        for outcome in [W, W, W, L, W, D, W, W]:
            stats = apply_outcome(stats, outcome)
            assert stats.best_streak >= best
            best = stats.best_streak
        assert best == 3

    def test_total_is_wins_losses_and_draws(self):
        outcomes = [W, D, L, W, D, L, L]
        stats = replay(outcomes)

        draws = outcomes.count(D)
        assert stats.total_matches == stats.wins + stats.losses + draws


class TestDerivedStats:
    """Tests for win rate, skill level and skill points"""

    def test_win_rate_without_matches(self):
        assert compute_win_rate(0, 0) == 0.0

    @pytest.mark.parametrize(
        "total, wins, expected",
        [
            (4, 4, SkillLevel.BEGINNER),
            (8, 6, SkillLevel.EXPERT),
            (10, 6, SkillLevel.ADVANCED),
            (10, 4, SkillLevel.INTERMEDIATE),
            (10, 3, SkillLevel.BEGINNER),
        ],
    )
    def test_skill_level(self, total, wins, expected):
        assert compute_skill_level(total, wins) == expected

    def test_skill_points(self):
        assert compute_skill_points(10, 4) == 120


class TestStatsService:
    """Tests for StatsService against the database"""

    @pytest.mark.asyncio
    async def test_duplicate_application_rejected(
        self, match_service, stats_service, four_players
    ):
        a, b, _, _ = four_players
        match = await match_service.create_match("Court 1", [a.id], [b.id])
        await match_service.record_result(match.id, [GameScoreInput(21, 9)])

        with pytest.raises(DuplicateStatsUpdateError) as exc_info:
            await stats_service.apply_match_result(match.id, a.id, Outcome.WIN)

        assert exc_info.value.code == "STATS_ALREADY_APPLIED"
        assert a.total_matches == 1
        assert a.wins == 1

    @pytest.mark.asyncio
    async def test_unknown_player(self, stats_service):
        with pytest.raises(PlayerNotFoundError):
            await stats_service.recompute(12345)

    @pytest.mark.asyncio
    async def test_recompute_repairs_drifted_stats(
        self, db_session, match_service, stats_service, four_players
    ):
        a, b, _, _ = four_players
        for scores in ([GameScoreInput(21, 9)], [GameScoreInput(21, 9)], [GameScoreInput(9, 21)]):
            match = await match_service.create_match("Court 1", [a.id], [b.id])
            await match_service.record_result(match.id, scores)

        a.wins = 42
        a.current_streak = 7
        await db_session.commit()

        repaired = await stats_service.recompute(a.id)

        assert repaired.total_matches == 3
        assert repaired.wins == 2
        assert repaired.losses == 1
        assert repaired.current_streak == -1
        assert repaired.best_streak == 2
        assert repaired.skill_points == 40
