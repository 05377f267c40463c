"""Shared fixtures: an in-memory database per test and player factories."""

import itertools
import os
from collections.abc import AsyncGenerator

# Settings are cached on first use; pin test values before the app imports them
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only-0123456789")
os.environ.setdefault("COURTS", "Court 1,Court 2,Court 3,Court 4")
os.environ.setdefault("AVERAGE_MATCH_MINUTES", "5")
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from smashqueue.models import Base, Player, Role
from smashqueue.services.directory import DirectoryService
from smashqueue.services.locks import WriteLocks
from smashqueue.services.match import MatchService
from smashqueue.services.queue import QueueService
from smashqueue.services.stats import StatsService
from smashqueue.utils.db import build_engine, build_session_factory

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory schema for each test."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session configured like the application's ``get_db``."""
    session_factory = build_session_factory(test_engine)

    async with session_factory() as session:
        yield session


@pytest.fixture
def write_locks() -> WriteLocks:
    return WriteLocks()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def queue_service(db_session: AsyncSession, write_locks: WriteLocks) -> QueueService:
    return QueueService(db_session, write_locks)


@pytest.fixture
def match_service(db_session: AsyncSession, write_locks: WriteLocks) -> MatchService:
    return MatchService(db_session, write_locks)


@pytest.fixture
def directory_service(db_session: AsyncSession, write_locks: WriteLocks) -> DirectoryService:
    return DirectoryService(db_session, write_locks)


@pytest.fixture
def stats_service(db_session: AsyncSession, write_locks: WriteLocks) -> StatsService:
    return StatsService(db_session, write_locks)


# =============================================================================
# Player Fixtures
# =============================================================================


@pytest.fixture
def make_player(directory_service: DirectoryService):
    """Factory for directory players with unique usernames.

    Usage:
        alice = await make_player("Alice")
        organizer = await make_player("Olivia", role=Role.ORGANIZER)
    """
    counter = itertools.count(1)

    async def _make(name: str | None = None, role: Role = Role.PLAYER, **kwargs) -> Player:
        n = next(counter)
        username = kwargs.pop("username", None) or f"{(name or 'player').lower()}{n}"
        return await directory_service.create_player(
            username=username,
            name=name or f"Player {n}",
            role=role,
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def four_players(make_player) -> list[Player]:
    """A, B, C and D, enough for one doubles match."""
    return [
        await make_player("Alice"),
        await make_player("Bob"),
        await make_player("Carol"),
        await make_player("Dave"),
    ]
