"""
Rate Limiting

Sliding-window rate limiting on Redis sorted sets, falling back to a
per-process window when Redis is unavailable.

Used on payment initiation (per applicant) and admin decision endpoints
(per admin).
"""

import logging
import time

from fastapi import HTTPException, status

from app.core import redis as redis_module

logger = logging.getLogger(__name__)

# key -> request timestamps inside the current window
_memory_windows: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds the allowed request rate."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _allow_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _allow_memory(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    window = [ts for ts in _memory_windows.get(key, []) if ts > now - window_seconds]

    if len(window) >= limit:
        _memory_windows[key] = window
        return False

    window.append(now)
    _memory_windows[key] = window
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Record a request against ``key`` and report whether it is allowed.

    Args:
        key: Rate limit key, e.g. ``payments:initiate:42``
        limit: Maximum requests in the window
        window_seconds: Window length in seconds

    Returns:
        True if allowed, False if the limit was exceeded
    """
    client = redis_module.redis_client

    if client is not None:
        try:
            return await _allow_redis(client, f"rate_limit:{key}", limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _allow_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """
    Like ``check_rate_limit`` but raises instead of returning False.

    Raises:
        RateLimitExceeded: When the limit is exceeded (HTTP 429)
    """
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "enforce_rate_limit",
]
