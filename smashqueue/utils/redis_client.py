"""Redis client for change notifications and rate limiting."""

from redis.asyncio import ConnectionPool, Redis

from smashqueue.config import get_settings

settings = get_settings()

# Global Redis connection pool and client instance
redis_pool: ConnectionPool | None = None
redis_client: Redis | None = None


async def init_redis() -> Redis | None:
    """Initialize Redis connection if ``redis_url`` is configured.

    Returns:
        Connected client, or None when Redis is not configured
    """
    global redis_pool, redis_client

    if not settings.redis_url:
        return None

    redis_pool = ConnectionPool.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        retry_on_timeout=True,
        encoding="utf-8",
        decode_responses=True,
    )
    redis_client = Redis(connection_pool=redis_pool)

    await redis_client.ping()
    return redis_client


async def close_redis() -> None:
    """Close Redis connection and pool."""
    global redis_pool, redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
    if redis_pool:
        await redis_pool.disconnect()
        redis_pool = None


def get_redis() -> Redis | None:
    """Return the initialized client, or None if Redis is disabled."""
    return redis_client
