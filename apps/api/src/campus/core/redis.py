"""
Redis Configuration

Async Redis client used for rate limiting and the revoked-token list.
Redis is optional outside production: callers receive None when it is down.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from campus.core.config import settings

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "auth:revoked:"

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


async def revoke_token_id(jti: str, ttl_seconds: int) -> bool:
    """
    Mark an access token id as revoked until it would have expired anyway.

    Returns:
        True if the revocation was stored
    """
    if redis_client is None or ttl_seconds <= 0:
        return False
    try:
        await redis_client.set(f"{REVOKED_TOKEN_PREFIX}{jti}", "1", ex=ttl_seconds)
        return True
    except RedisError as e:
        logger.warning(f"Could not store token revocation: {e}")
        return False


async def is_token_id_revoked(jti: str | None) -> bool:
    """Check the revoked-token list. Fails open when Redis is unavailable."""
    if not jti or redis_client is None:
        return False
    try:
        return bool(await redis_client.exists(f"{REVOKED_TOKEN_PREFIX}{jti}"))
    except RedisError as e:
        logger.warning(f"Could not check token revocation: {e}")
        return False
