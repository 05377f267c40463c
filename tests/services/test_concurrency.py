"""Tests for concurrent writers sharing one set of write locks.

Each simulated request gets its own session on a file-backed SQLite
database, the way the app hands every request its own ``get_db`` session.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smashqueue.models import Base, Player, QueueEntry, QueueStatus, StatsLedger
from smashqueue.services.directory import DirectoryService
from smashqueue.services.locks import WriteLocks
from smashqueue.services.match import GameScoreInput, MatchService
from smashqueue.services.queue import QueueService
from smashqueue.utils.db import build_engine, build_session_factory
from smashqueue.utils.errors import SmashQueueError


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.sqlite'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def shared_locks() -> WriteLocks:
    return WriteLocks()


async def create_players(factory: async_sessionmaker[AsyncSession], count: int) -> list[int]:
    async with factory() as session:
        directory = DirectoryService(session)
        players = [
            await directory.create_player(username=f"player{n}", name=f"Player {n}")
            for n in range(count)
        ]
        return [p.id for p in players]


async def outcome_of(coro) -> str:
    """Run one request and reduce it to ``ok`` or the error code."""
    try:
        await coro
    except SmashQueueError as e:
        return e.code
    return "ok"


class TestConcurrentResults:
    """Two organizers submit the same result at once"""

    @pytest.mark.asyncio
    async def test_one_submission_wins(self, session_factory, shared_locks: WriteLocks):
        player_ids = await create_players(session_factory, 4)
        async with session_factory() as setup:
            match = await MatchService(setup, shared_locks).create_match(
                "Court 1", player_ids[:2], player_ids[2:]
            )
            match_id = match.id

        async def submit(scores: list[GameScoreInput]) -> str:
            async with session_factory() as session:
                # The auth dependency reads the caller before the service runs
                await session.get(Player, player_ids[0])
                service = MatchService(session, shared_locks)
                return await outcome_of(service.record_result(match_id, scores))

        outcomes = await asyncio.gather(
            submit([GameScoreInput(21, 15)]),
            submit([GameScoreInput(15, 21)]),
        )

        assert sorted(outcomes) == ["MATCH_ALREADY_COMPLETED", "ok"]
        async with session_factory() as check:
            players = (await check.execute(select(Player))).scalars().all()
            assert [p.total_matches for p in players] == [1, 1, 1, 1]
            assert sum(p.wins for p in players) == 2
            ledger_rows = await check.scalar(
                select(func.count(StatsLedger.id)).where(StatsLedger.match_id == match_id)
            )
            assert ledger_rows == 4


class TestConcurrentQueueWrites:
    """Join and call-next from several requests at once"""

    @pytest.mark.asyncio
    async def test_double_join_creates_one_entry(self, session_factory, shared_locks: WriteLocks):
        (player_id,) = await create_players(session_factory, 1)

        async def join() -> str:
            async with session_factory() as session:
                await session.get(Player, player_id)
                return await outcome_of(QueueService(session, shared_locks).join(player_id))

        outcomes = await asyncio.gather(join(), join())

        assert sorted(outcomes) == ["ALREADY_QUEUED", "ok"]
        async with session_factory() as check:
            entries = await check.scalar(
                select(func.count(QueueEntry.id)).where(QueueEntry.player_id == player_id)
            )
            assert entries == 1

    @pytest.mark.asyncio
    async def test_simultaneous_joins_get_distinct_positions(
        self, session_factory, shared_locks: WriteLocks
    ):
        player_ids = await create_players(session_factory, 6)

        async def join(player_id: int) -> int:
            async with session_factory() as session:
                update = await QueueService(session, shared_locks).join(player_id)
                return update.info.your_position

        positions = await asyncio.gather(*(join(pid) for pid in player_ids))

        assert sorted(positions) == [1, 2, 3, 4, 5, 6]

    @pytest.mark.asyncio
    async def test_call_next_never_calls_an_entry_twice(
        self, session_factory, shared_locks: WriteLocks
    ):
        player_ids = await create_players(session_factory, 8)
        async with session_factory() as setup:
            queue = QueueService(setup, shared_locks)
            for player_id in player_ids:
                await queue.join(player_id)

        async def call() -> list[int]:
            async with session_factory() as session:
                called = await QueueService(session, shared_locks).call_next(4)
                return [entry.player_id for entry in called]

        first, second = await asyncio.gather(call(), call())

        assert len(first) == len(second) == 4
        assert set(first).isdisjoint(second)
        assert sorted(first + second) == sorted(player_ids)
        async with session_factory() as check:
            statuses = (await check.execute(select(QueueEntry.status))).scalars().all()
            assert statuses == [QueueStatus.CALLED.value] * 8

    @pytest.mark.asyncio
    async def test_call_next_short_queue_calls_once(
        self, session_factory, shared_locks: WriteLocks
    ):
        player_ids = await create_players(session_factory, 6)
        async with session_factory() as setup:
            queue = QueueService(setup, shared_locks)
            for player_id in player_ids:
                await queue.join(player_id)

        async def call() -> str:
            async with session_factory() as session:
                return await outcome_of(QueueService(session, shared_locks).call_next(4))

        outcomes = await asyncio.gather(call(), call())

        assert sorted(outcomes) == ["INSUFFICIENT_PLAYERS", "ok"]
        async with session_factory() as check:
            waiting = await check.scalar(
                select(func.count(QueueEntry.id)).where(
                    QueueEntry.status == QueueStatus.WAITING.value
                )
            )
            assert waiting == 2
