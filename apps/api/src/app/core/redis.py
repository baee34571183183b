"""
Redis Connection

Async Redis client holding document staging buffers and rate limit windows.
"""

from redis.asyncio import Redis, from_url

from app.core.config import settings

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect to Redis. Call this on application startup."""
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


async def get_redis() -> Redis | None:
    """
    FastAPI dependency returning the shared client.

    Returns None when Redis was not initialised; callers that need the
    staging buffer must treat that as unavailable.
    """
    return redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.close()
        redis_client = None
