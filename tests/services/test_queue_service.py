"""Tests for QueueService.

Tests:
- FIFO positions and recomputation after leave
- Duplicate join / leave rejection
- CallNext all-or-nothing behaviour
- Wait estimate, next court and currently playing
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy import select

from smashqueue.models import Base, QueueEntry, QueueStatus
from smashqueue.services.directory import DirectoryService
from smashqueue.services.locks import WriteLocks
from smashqueue.services.queue import QueueService
from smashqueue.utils.db import build_engine, build_session_factory
from smashqueue.utils.errors import (
    AlreadyQueuedError,
    InsufficientPlayersError,
    NotQueuedError,
    PlayerNotFoundError,
    ValidationError,
)


async def waiting_player_ids(queue: QueueService) -> list[int]:
    return [w.entry.player_id for w in await queue.list_waiting()]


class TestJoin:
    """Tests for QueueService.join"""

    @pytest.mark.asyncio
    async def test_first_player_is_next_up(self, queue_service, four_players):
        alice = four_players[0]

        update = await queue_service.join(alice.id)

        assert update.entry.status == QueueStatus.WAITING.value
        assert update.info.total_in_queue == 1
        assert update.info.your_position == 1
        assert update.info.estimated_wait == "Next up!"
        assert update.info.estimated_wait_minutes == 0

    @pytest.mark.asyncio
    async def test_positions_follow_join_order(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)

        waiting = await queue_service.list_waiting()

        assert [w.position for w in waiting] == [1, 2, 3, 4]
        assert [w.entry.player_id for w in waiting] == [p.id for p in four_players]

    @pytest.mark.asyncio
    async def test_second_player_waits_one_match(self, queue_service, four_players):
        await queue_service.join(four_players[0].id)

        update = await queue_service.join(four_players[1].id)

        assert update.info.your_position == 2
        assert update.info.estimated_wait == "~5 min"
        assert update.info.estimated_wait_minutes == 5

    @pytest.mark.asyncio
    async def test_join_twice_rejected(self, queue_service, four_players):
        alice_id = four_players[0].id
        await queue_service.join(alice_id)

        with pytest.raises(AlreadyQueuedError) as exc_info:
            await queue_service.join(alice_id)

        assert exc_info.value.code == "ALREADY_QUEUED"
        assert exc_info.value.http_status == 409
        # Rolled-back sessions expire loaded objects; compare by captured id
        assert await waiting_player_ids(queue_service) == [alice_id]

    @pytest.mark.asyncio
    async def test_called_player_cannot_rejoin(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)
        await queue_service.call_next(4)

        with pytest.raises(AlreadyQueuedError):
            await queue_service.join(four_players[0].id)

    @pytest.mark.asyncio
    async def test_unknown_player_rejected(self, queue_service):
        with pytest.raises(PlayerNotFoundError):
            await queue_service.join(999)

    @pytest.mark.asyncio
    async def test_inactive_player_rejected(self, queue_service, directory_service, make_player):
        player = await make_player("Idle")
        await directory_service.set_active(player.id, False)

        with pytest.raises(PlayerNotFoundError):
            await queue_service.join(player.id)

    @pytest.mark.asyncio
    async def test_identical_join_times_ordered_by_insertion(
        self, queue_service, four_players
    ):
        """Entries sharing a timestamp keep insertion order."""
        frozen = datetime(2026, 10, 18, 19, 0, tzinfo=timezone.utc)
        with patch("smashqueue.services.queue.utcnow", return_value=frozen):
            for player in reversed(four_players):
                await queue_service.join(player.id)

        assert await waiting_player_ids(queue_service) == [
            p.id for p in reversed(four_players)
        ]


class TestLeave:
    """Tests for QueueService.leave"""

    @pytest.mark.asyncio
    async def test_leave_shifts_later_players_up(self, queue_service, four_players):
        alice, bob, carol, _ = four_players
        for player in (alice, bob, carol):
            await queue_service.join(player.id)

        update = await queue_service.leave(bob.id)

        assert update.entry.status == QueueStatus.LEFT.value
        assert update.entry.closed_at is not None
        assert update.info.your_position is None
        waiting = await queue_service.list_waiting()
        assert [(w.entry.player_id, w.position) for w in waiting] == [
            (alice.id, 1),
            (carol.id, 2),
        ]

    @pytest.mark.asyncio
    async def test_leave_when_not_queued(self, queue_service, four_players):
        with pytest.raises(NotQueuedError) as exc_info:
            await queue_service.leave(four_players[0].id)

        assert exc_info.value.code == "NOT_QUEUED"
        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_called_player_may_leave(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)
        await queue_service.call_next(4)

        update = await queue_service.leave(four_players[2].id)

        assert update.entry.status == QueueStatus.LEFT.value

    @pytest.mark.asyncio
    async def test_rejoin_goes_to_the_back(self, queue_service, four_players):
        alice, bob, carol, _ = four_players
        for player in (alice, bob, carol):
            await queue_service.join(player.id)

        await queue_service.leave(alice.id)
        update = await queue_service.join(alice.id)

        assert update.info.your_position == 3
        assert await waiting_player_ids(queue_service) == [bob.id, carol.id, alice.id]


class TestCallNext:
    """Tests for QueueService.call_next"""

    @pytest.mark.asyncio
    async def test_calls_longest_waiting_in_order(self, queue_service, four_players, make_player):
        eve = await make_player("Eve")
        for player in [*four_players, eve]:
            await queue_service.join(player.id)

        called = await queue_service.call_next(4)

        assert [e.player_id for e in called] == [p.id for p in four_players]
        assert all(e.status == QueueStatus.CALLED.value for e in called)
        assert all(e.called_at is not None for e in called)

        info = await queue_service.status(eve.id)
        assert info.total_in_queue == 1
        assert info.your_position == 1

    @pytest.mark.asyncio
    async def test_defaults_to_four(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)

        called = await queue_service.call_next()

        assert len(called) == 4

    @pytest.mark.asyncio
    async def test_insufficient_players_changes_nothing(self, queue_service, four_players):
        player_ids = [p.id for p in four_players[:3]]
        for player_id in player_ids:
            await queue_service.join(player_id)

        with pytest.raises(InsufficientPlayersError) as exc_info:
            await queue_service.call_next(4)

        assert exc_info.value.details == {"waiting": 3, "required": 4}
        waiting = await queue_service.list_waiting()
        assert [w.entry.player_id for w in waiting] == player_ids
        assert all(w.entry.status == QueueStatus.WAITING.value for w in waiting)

    @pytest.mark.asyncio
    async def test_count_must_be_positive(self, queue_service):
        with pytest.raises(ValidationError):
            await queue_service.call_next(0)

    @pytest.mark.asyncio
    async def test_called_player_has_status_but_no_position(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)
        await queue_service.call_next(2)

        info = await queue_service.status(four_players[0].id)

        assert info.your_status == QueueStatus.CALLED.value
        assert info.your_position is None
        assert info.total_in_queue == 2


class TestQueueStatus:
    """Tests for QueueService.status"""

    @pytest.mark.asyncio
    async def test_empty_queue(self, queue_service):
        info = await queue_service.status()

        assert info.total_in_queue == 0
        assert info.your_position is None
        assert info.next_court == "Court 1"
        assert info.currently_playing == []

    @pytest.mark.asyncio
    async def test_wait_grows_with_position(self, queue_service, four_players):
        for player in four_players:
            await queue_service.join(player.id)

        info = await queue_service.status(four_players[3].id)

        assert info.your_position == 4
        assert info.estimated_wait_minutes == 15
        assert info.estimated_wait == "~15 min"

    @pytest.mark.asyncio
    async def test_next_court_skips_busy_courts(
        self, queue_service, match_service, four_players
    ):
        a, b, c, d = four_players
        await match_service.create_match("Court 1", [a.id], [b.id])

        info = await queue_service.status()

        assert info.next_court == "Court 2"

    @pytest.mark.asyncio
    async def test_currently_playing_lists_consumed_entries(
        self, queue_service, match_service, four_players
    ):
        a, b, c, d = four_players
        for player in four_players:
            await queue_service.join(player.id)
        await queue_service.call_next(4)
        match = await match_service.create_match("Court 1", [a.id, b.id], [c.id, d.id])

        info = await queue_service.status()

        assert info.total_in_queue == 0
        assert {e.player_id for e in info.currently_playing} == {a.id, b.id, c.id, d.id}
        assert all(e.match_id == match.id for e in info.currently_playing)

        assert all(e.status == QueueStatus.CONSUMED.value for e in info.currently_playing)


# =============================================================================
# Property: positions are always 1..n in join order
# =============================================================================


PLAYER_COUNT = 6

queue_ops = st.lists(
    st.tuples(st.sampled_from(["join", "leave"]), st.integers(0, PLAYER_COUNT - 1)),
    min_size=1,
    max_size=25,
)


async def run_queue_ops(ops: list[tuple[str, int]]) -> None:
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        async with build_session_factory(engine)() as session:
            locks = WriteLocks()
            directory = DirectoryService(session, locks)
            queue = QueueService(session, locks)
            player_ids = [
                (await directory.create_player(username=f"p{i}", name=f"P{i}")).id
                for i in range(PLAYER_COUNT)
            ]

            expected: list[int] = []
            for op, index in ops:
                player_id = player_ids[index]
                if op == "join":
                    if player_id in expected:
                        with pytest.raises(AlreadyQueuedError):
                            await queue.join(player_id)
                    else:
                        await queue.join(player_id)
                        expected.append(player_id)
                else:
                    if player_id in expected:
                        await queue.leave(player_id)
                        expected.remove(player_id)
                    else:
                        with pytest.raises(NotQueuedError):
                            await queue.leave(player_id)

                waiting = await queue.list_waiting()
                assert [w.entry.player_id for w in waiting] == expected
                assert [w.position for w in waiting] == list(range(1, len(expected) + 1))

            active = await session.scalar(
                select(QueueEntry.id).where(
                    QueueEntry.status == QueueStatus.WAITING.value
                ).limit(1)
            )
            assert (active is None) == (not expected)
    finally:
        await engine.dispose()


@settings(
    max_examples=25,
    deadline=None,
)
@given(ops=queue_ops)
def test_positions_are_dense_and_fifo(ops):
    """Any join/leave sequence leaves waiting positions 1..n in join order."""
    asyncio.run(run_queue_ops(ops))
