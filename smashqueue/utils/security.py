"""Bearer token utilities.

Tokens are minted by the external auth service with the shared signing key;
this service only verifies them and reads the caller's player id. Token
creation is kept here for tooling and tests.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from smashqueue.config import get_settings

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Token verification error with code."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def create_access_token(
    player_id: int,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        player_id: Player ID to encode in ``sub``
        additional_claims: Additional claims to include
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(player_id),
        "type": "access",
        "iat": now,
        "exp": now + expires_delta,
    }

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_access_token(token: str) -> int:
    """Verify an access token and return the player id it names.

    Raises:
        TokenError: If the token is expired, malformed or not an access token
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as e:
        raise TokenError("AUTH_TOKEN_EXPIRED", "Token has expired") from e
    except JWTError as e:
        logger.debug("Token verification failed: %s", e)
        raise TokenError("AUTH_INVALID_TOKEN", "Invalid token") from e

    if payload.get("type") != "access":
        raise TokenError("AUTH_INVALID_TOKEN", "Not an access token")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise TokenError("AUTH_INVALID_TOKEN", "Invalid token payload") from e
