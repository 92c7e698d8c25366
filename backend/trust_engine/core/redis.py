"""
Redis client for the synchronous service layer.

Services run in the threadpool (plain `def` routes and Celery workers), so a
single sync client is shared process-wide. Connection is lazy: nothing is
opened until the first command.
"""

import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from trust_engine.core.config import get_settings

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


def get_redis() -> Redis:
    """Get the shared Redis client, creating it on first use."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis_client


def ping_redis() -> bool:
    """Return True if Redis answers a PING."""
    try:
        return bool(get_redis().ping())
    except RedisError:
        logger.warning("Redis ping failed", exc_info=True)
        return False


def close_redis() -> None:
    """Close the shared Redis client."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def reset_redis() -> None:
    """Drop the shared client without closing it (for testing)."""
    global _redis_client
    _redis_client = None
