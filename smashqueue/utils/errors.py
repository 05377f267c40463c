"""Domain exception classes.

Every error carries a stable code, a user-facing message and optional
details. The HTTP layer maps ``http_status`` onto the response; services
never build HTTP responses themselves.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator

from sqlalchemy.exc import DBAPIError, OperationalError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class ErrorCode(str, Enum):
    """Stable error codes returned to clients."""

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"

    # Queue
    ALREADY_QUEUED = "ALREADY_QUEUED"
    NOT_QUEUED = "NOT_QUEUED"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"

    # Match
    INVALID_TEAMS = "INVALID_TEAMS"
    INVALID_SCORES = "INVALID_SCORES"
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    MATCH_ALREADY_COMPLETED = "MATCH_ALREADY_COMPLETED"

    # Stats
    STATS_ALREADY_APPLIED = "STATS_ALREADY_APPLIED"

    # Directory
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    USERNAME_EXISTS = "USERNAME_EXISTS"
    INVALID_SKILL_TIER = "INVALID_SKILL_TIER"
    INVALID_HAND_PREFERENCE = "INVALID_HAND_PREFERENCE"


class SmashQueueError(Exception):
    """Base exception for all domain errors.

    Attributes:
        code: Error code for programmatic handling
        message: User-friendly error message
        details: Additional error details
        http_status: Status code the API layer responds with
    """

    http_status: int = 500
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | str | None = None,
        details: dict[str, Any] | None = None,
    ):
        code = code or self.default_code
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``error`` member of the response envelope."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Taxonomy
# =============================================================================


class ValidationError(SmashQueueError):
    """Bad input shape or range."""

    http_status = 400
    default_code = ErrorCode.VALIDATION_ERROR


class ConflictError(SmashQueueError):
    """Request conflicts with the current state."""

    http_status = 409
    default_code = ErrorCode.CONFLICT


class NotFoundError(SmashQueueError):
    """Referenced entity does not exist."""

    http_status = 404
    default_code = ErrorCode.NOT_FOUND


class AuthenticationError(SmashQueueError):
    """Caller identity missing or invalid."""

    http_status = 401
    default_code = ErrorCode.UNAUTHORIZED


class AuthorizationError(SmashQueueError):
    """Caller's role lacks the required capability."""

    http_status = 403
    default_code = ErrorCode.FORBIDDEN


class TransientError(SmashQueueError):
    """Storage or network failure; safe to retry."""

    http_status = 503
    default_code = ErrorCode.STORAGE_UNAVAILABLE


# =============================================================================
# Queue errors
# =============================================================================


class AlreadyQueuedError(ConflictError):
    """Raised when a player with an active entry tries to join again."""

    def __init__(self, player_id: int):
        super().__init__(
            "Player is already in the queue",
            code=ErrorCode.ALREADY_QUEUED,
            details={"playerId": player_id},
        )


class NotQueuedError(NotFoundError):
    """Raised when a player without an active entry tries to leave."""

    def __init__(self, player_id: int):
        super().__init__(
            "Player is not in the queue",
            code=ErrorCode.NOT_QUEUED,
            details={"playerId": player_id},
        )


class InsufficientPlayersError(ConflictError):
    """Raised when fewer players are waiting than requested."""

    def __init__(self, waiting: int, required: int):
        super().__init__(
            f"Not enough players waiting: {waiting}/{required}",
            code=ErrorCode.INSUFFICIENT_PLAYERS,
            details={"waiting": waiting, "required": required},
        )


# =============================================================================
# Match errors
# =============================================================================


class InvalidTeamsError(ValidationError):
    """Raised for empty, oversized, overlapping or unknown team members."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.INVALID_TEAMS, details=details)


class PlayerInActiveMatchError(InvalidTeamsError):
    """Raised when a listed player is already playing on a court."""

    http_status = 409

    def __init__(self, player_ids: list[int]):
        super().__init__(
            "Players already in an active match",
            details={"reason": "player_in_active_match", "playerIds": player_ids},
        )


class InvalidScoresError(ValidationError):
    """Raised when submitted game scores are malformed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.INVALID_SCORES, details=details)


class MatchNotFoundError(NotFoundError):
    """Raised when a match id is unknown."""

    def __init__(self, match_id: int):
        super().__init__(
            f"Match not found: {match_id}",
            code=ErrorCode.MATCH_NOT_FOUND,
            details={"matchId": match_id},
        )


class MatchAlreadyCompletedError(ConflictError):
    """Raised when a result is submitted for a completed match."""

    def __init__(self, match_id: int):
        super().__init__(
            "Match result has already been recorded",
            code=ErrorCode.MATCH_ALREADY_COMPLETED,
            details={"matchId": match_id},
        )


class DuplicateStatsUpdateError(ConflictError):
    """Raised when stats for a (match, player) pair were already applied."""

    def __init__(self, match_id: int, player_id: int):
        super().__init__(
            "Stats already applied for this match",
            code=ErrorCode.STATS_ALREADY_APPLIED,
            details={"matchId": match_id, "playerId": player_id},
        )


# =============================================================================
# Directory errors
# =============================================================================


class PlayerNotFoundError(NotFoundError):
    """Raised when a player id is unknown."""

    def __init__(self, player_id: int):
        super().__init__(
            f"Player not found: {player_id}",
            code=ErrorCode.PLAYER_NOT_FOUND,
            details={"playerId": player_id},
        )


class InvalidSkillTierError(ValidationError):
    """Raised when a skill tier is outside the ordered tier set."""

    def __init__(self, value: str, allowed: list[str]):
        super().__init__(
            f"Invalid skill tier: {value}",
            code=ErrorCode.INVALID_SKILL_TIER,
            details={"value": value, "allowed": allowed},
        )


class InvalidHandPreferenceError(ValidationError):
    """Raised when a hand preference is not left/right."""

    def __init__(self, value: str):
        super().__init__(
            f"Invalid hand preference: {value}",
            code=ErrorCode.INVALID_HAND_PREFERENCE,
            details={"value": value, "allowed": ["left", "right"]},
        )


# =============================================================================
# Storage error translation
# =============================================================================


def is_transient_db_error(exc: BaseException) -> bool:
    """Whether a database exception is worth retrying."""
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, (TimeoutError, ConnectionError))


@asynccontextmanager
async def storage_errors(session: "AsyncSession | None" = None) -> AsyncIterator[None]:
    """Translate storage failures into ``TransientError``.

    When a session is given it is rolled back first so a retried read starts
    from a clean transaction.

    Usage:
        async with storage_errors(self.db):
            result = await self.db.execute(...)
    """
    try:
        yield
    except SmashQueueError:
        raise
    except Exception as e:
        if is_transient_db_error(e):
            if session is not None:
                await session.rollback()
            raise TransientError(
                "Storage temporarily unavailable",
                details={"errorType": type(e).__name__},
            ) from e
        raise
