"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis sorted sets, falling back to
in-process memory when Redis is unavailable.

Applied to the credential endpoints (login, OTP, magic links, password
reset) to slow down brute force and message bombing.
"""

import logging
import time

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from campus.core import redis as redis_state

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
_memory_store: dict[str, list[float]] = {}
# key -> time after which its bucket holds no live hits
_memory_expiry: dict[str, float] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """Sliding window using a sorted set of request timestamps."""
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {f"{now}": now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Fallback store. Does not work across multiple server instances."""
    now = time.time()
    window_start = now - window_seconds

    _evict_expired(now)

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    _memory_expiry[key] = now + window_seconds
    return True


def _evict_expired(now: float) -> None:
    for key in [k for k, expires_at in _memory_expiry.items() if expires_at <= now]:
        _memory_store.pop(key, None)
        del _memory_expiry[key]


def reset_memory_store() -> None:
    """Clear the in-memory fallback store."""
    _memory_store.clear()
    _memory_expiry.clear()


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Args:
        key: Unique key for this rate limit (e.g., "otp:request:+254712345678")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = redis_state.redis_client
    if client is not None:
        try:
            return await _check_rate_limit_redis(client, f"rate_limit:{key}", limit, window_seconds)
        except RedisError as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """
    Raise ``RateLimitExceeded`` when ``key`` is over its limit.

    Raises:
        RateLimitExceeded: HTTP 429 with a Retry-After header
    """
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def client_ip(request: Request) -> str:
    """Best-effort client address, honouring X-Forwarded-For."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


__all__ = [
    "check_rate_limit",
    "enforce_rate_limit",
    "client_ip",
    "reset_memory_store",
    "RateLimitExceeded",
]
