"""Utility modules."""

from smashqueue.utils.db import get_db, engine
from smashqueue.utils.redis_client import get_redis

__all__ = [
    "get_db",
    "engine",
    "get_redis",
]
