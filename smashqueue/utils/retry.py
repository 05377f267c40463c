"""Bounded retry for read operations.

Only reads are retried. State-mutating operations surface ``TransientError``
to the caller, who decides whether to resubmit.
"""

import functools
import logging

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smashqueue.config import get_settings
from smashqueue.utils.errors import TransientError

logger = logging.getLogger(__name__)


def read_retrying() -> AsyncRetrying:
    """Build the retry controller for one read call."""
    settings = get_settings()
    return AsyncRetrying(
        retry=retry_if_exception_type(TransientError),
        stop=stop_after_attempt(settings.read_retry_attempts),
        wait=wait_exponential(multiplier=0.1, max=settings.read_retry_max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_read(func):
    """Decorate an async read method with the bounded retry policy.

    Usage:
        @retry_read
        async def list_active(self) -> list[Match]:
            ...
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        async for attempt in read_retrying():
            with attempt:
                return await func(*args, **kwargs)

    return wrapper
