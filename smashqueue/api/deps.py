"""API dependencies for authentication, authorization and services."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.logging_config import bind_context
from smashqueue.middleware.sentry import set_player_context
from smashqueue.models.player import Player
from smashqueue.services.directory import DirectoryService
from smashqueue.services.locks import WriteLocks
from smashqueue.services.match import MatchService
from smashqueue.services.notifier import StateNotifier
from smashqueue.services.queue import QueueService
from smashqueue.services.stats import StatsService
from smashqueue.utils.db import get_db
from smashqueue.utils.errors import AuthenticationError, AuthorizationError
from smashqueue.utils.permissions import Capability, is_allowed
from smashqueue.utils.security import TokenError, verify_access_token

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


@dataclass(frozen=True)
class Caller:
    """Identity of the player making this request."""

    player_id: int
    role: str
    player: Player

    def can(self, capability: Capability) -> bool:
        return is_allowed(self.role, capability)


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> Caller:
    """Resolve the caller from the bearer token (required auth).

    The role comes from the player record, so role changes apply without
    reissuing tokens.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or unknown player
        AuthorizationError: Player is disabled
    """
    if not credentials:
        raise AuthenticationError("Authentication required", code="AUTH_REQUIRED")

    try:
        player_id = verify_access_token(credentials.credentials)
    except TokenError as e:
        raise AuthenticationError(e.message, code=e.code) from e

    player = await db.get(Player, player_id)
    if player is None:
        raise AuthenticationError("User not found", code="AUTH_USER_NOT_FOUND")

    if not player.is_active:
        raise AuthorizationError("Account is disabled", code="AUTH_ACCOUNT_INACTIVE")

    bind_context(player_id=player.id)
    set_player_context(player.id, player.role)
    return Caller(player_id=player.id, role=player.role, player=player)


CurrentCaller = Annotated[Caller, Depends(get_current_caller)]


def require_capability(capability: Capability):
    """Dependency to require a capability of the caller's role.

    Usage:
        @router.post("/call")
        async def call_next(caller: Annotated[Caller, Depends(require_capability(Capability.CALL_QUEUE))]):
            ...
    """

    async def capability_checker(caller: CurrentCaller) -> Caller:
        if not caller.can(capability):
            raise AuthorizationError(
                "Insufficient permissions",
                details={"required": capability.value, "role": caller.role},
            )
        return caller

    return capability_checker


def ensure_self_or(caller: Caller, player_id: int, capability: Capability) -> None:
    """Allow access to one's own records, or with ``capability``."""
    if caller.player_id != player_id and not caller.can(capability):
        raise AuthorizationError(
            "Insufficient permissions",
            details={"required": capability.value, "role": caller.role},
        )


def get_write_locks(request: Request) -> WriteLocks:
    return request.app.state.write_locks


def get_notifier(request: Request) -> StateNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    return notifier or StateNotifier()


Locks = Annotated[WriteLocks, Depends(get_write_locks)]
Notifier = Annotated[StateNotifier, Depends(get_notifier)]


def get_queue_service(db: DbSession, locks: Locks, notifier: Notifier) -> QueueService:
    return QueueService(db, locks, notifier)


def get_match_service(db: DbSession, locks: Locks, notifier: Notifier) -> MatchService:
    return MatchService(db, locks, notifier)


def get_directory_service(db: DbSession, locks: Locks, notifier: Notifier) -> DirectoryService:
    return DirectoryService(db, locks, notifier)


def get_stats_service(db: DbSession, locks: Locks) -> StatsService:
    return StatsService(db, locks)


# Type aliases for cleaner annotations
QueueSvc = Annotated[QueueService, Depends(get_queue_service)]
MatchSvc = Annotated[MatchService, Depends(get_match_service)]
DirectorySvc = Annotated[DirectoryService, Depends(get_directory_service)]
StatsSvc = Annotated[StatsService, Depends(get_stats_service)]

QueueViewer = Annotated[Caller, Depends(require_capability(Capability.VIEW_QUEUE))]
QueueMember = Annotated[Caller, Depends(require_capability(Capability.JOIN_QUEUE))]
QueueCaller = Annotated[Caller, Depends(require_capability(Capability.CALL_QUEUE))]
MatchManager = Annotated[Caller, Depends(require_capability(Capability.MANAGE_MATCHES))]
MatchViewer = Annotated[Caller, Depends(require_capability(Capability.VIEW_ALL_MATCHES))]
PlayerManager = Annotated[Caller, Depends(require_capability(Capability.MANAGE_PLAYERS))]
