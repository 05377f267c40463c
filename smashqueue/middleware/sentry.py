"""Sentry error tracking integration.

Features:
- Automatic error capture
- Performance monitoring
- Player and match context tags
"""

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

# Domain errors answered with a 4xx are expected and not reported
EXPECTED_ERROR_BASES = (
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
)


def init_sentry(
    dsn: str | None = None,
    environment: str = "development",
    release: str | None = None,
    traces_sample_rate: float = 0.05,
) -> bool:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN. If None, uses SENTRY_DSN env var.
        environment: Environment name (development, staging, production)
        release: Release version string
        traces_sample_rate: Fraction of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    sentry_dsn = dsn or os.getenv("SENTRY_DSN")

    if not sentry_dsn:
        return False

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # Capture INFO and above as breadcrumbs
        event_level=logging.ERROR,  # Send ERROR and above as events
    )

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=release or os.getenv("APP_VERSION", "1.0.0"),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            RedisIntegration(),
            logging_integration,
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
    )

    return True


def _before_send(event: dict, hint: dict) -> dict | None:
    """Drop expected domain errors; keep transient and unexpected ones."""
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        bases = {cls.__name__ for cls in exc_type.__mro__}
        if bases & set(EXPECTED_ERROR_BASES):
            return None

    return event


def _before_send_transaction(event: dict, hint: dict) -> dict | None:
    """Drop health check and metrics transactions."""
    transaction_name = event.get("transaction", "")
    if any(path in transaction_name for path in ["/health", "/metrics"]):
        return None

    return event


def set_player_context(player_id: int, role: str | None = None) -> None:
    """Attach the caller to subsequent error reports."""
    sentry_sdk.set_user({"id": str(player_id)})
    if role:
        sentry_sdk.set_tag("player_role", role)


def set_match_context(match_id: int | None = None, court: str | None = None) -> None:
    """Tag subsequent error reports with the match being handled."""
    if match_id is not None:
        sentry_sdk.set_tag("match_id", str(match_id))
    if court:
        sentry_sdk.set_tag("court", court)
