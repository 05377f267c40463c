"""Test fixtures for API integration tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException

from smashqueue.models import Player, Role
from smashqueue.services.locks import WriteLocks
from smashqueue.services.notifier import StateNotifier
from smashqueue.utils.db import get_db
from smashqueue.utils.errors import SmashQueueError
from smashqueue.utils.security import create_access_token


# =============================================================================
# FastAPI App & Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_app(db_session: AsyncSession, write_locks: WriteLocks):
    """Create a test FastAPI application with the production routers and handlers."""
    from smashqueue.api import admin, matches, queue, users
    from smashqueue.main import (
        domain_error_handler,
        http_exception_handler,
        request_validation_handler,
    )
    from smashqueue.utils.json_utils import ORJSONResponse

    app = FastAPI(title="Test App", default_response_class=ORJSONResponse)
    app.state.write_locks = write_locks
    app.state.notifier = StateNotifier()

    async def override_get_db():
        """Override that commits after each request like production get_db()."""
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    app.add_exception_handler(SmashQueueError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    app.include_router(queue.router, prefix="/api")
    app.include_router(matches.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    yield app


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# Player & Auth Fixtures
# =============================================================================


def auth_headers_for(player: Player) -> dict[str, str]:
    """Authorization headers with a valid access token for ``player``."""
    return {"Authorization": f"Bearer {create_access_token(player.id)}"}


@pytest_asyncio.fixture(scope="function")
async def organizer(make_player) -> Player:
    return await make_player("Olivia", role=Role.ORGANIZER)


@pytest_asyncio.fixture(scope="function")
async def admin_player(make_player) -> Player:
    return await make_player("Adam", role=Role.ADMIN)


@pytest.fixture
def organizer_headers(organizer: Player) -> dict[str, str]:
    return auth_headers_for(organizer)


@pytest.fixture
def admin_headers(admin_player: Player) -> dict[str, str]:
    return auth_headers_for(admin_player)


@pytest.fixture
def player_headers(four_players: list[Player]) -> list[dict[str, str]]:
    """Headers for A, B, C and D, in that order."""
    return [auth_headers_for(p) for p in four_players]


@pytest.fixture
def invalid_auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer invalid-token-12345"}


@pytest.fixture
def headers_for():
    """Build auth headers for any player inside a test."""
    return auth_headers_for
