"""
Rate limiting.

Two layers:
- `limiter`: slowapi per-route HTTP limits (auth_id for authenticated users,
  client IP for anonymous), backed by Redis for multi-process deployments.
- `SlidingWindowRateLimiter`: per-key sliding-window log used by the report
  intake gate. Each consumed slot is a sorted-set member scored by its
  timestamp, so the window slides continuously instead of resetting on
  bucket boundaries. A slot can be released again when the guarded
  operation does not go through.
"""

import time
import uuid
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from redis import Redis
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from trust_engine.core.config import get_settings
from trust_engine.core.redis import get_redis


def _get_rate_limit_key(request: Request) -> str:
    """
    Extract rate limit key from request.

    Priority:
    1. Authenticated user -> "auth:{auth_id}"
    2. Anonymous -> "ip:{client_ip}"
    """
    user_state = getattr(request.state, "user", None)
    if user_state and getattr(user_state, "auth_id", None):
        return f"auth:{user_state.auth_id}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=["60/minute"],
    enabled=get_settings().rate_limit_enabled,
    storage_uri=get_settings().redis_url,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors with a standardized response."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please try again later.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
    )


# Trim expired members, count, and add the new member only when under the limit.
# Runs atomically inside Redis so concurrent callers cannot overshoot.
_SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now_ms = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now_ms - window_ms)
local count = redis.call('ZCARD', key)
if count >= limit then
    return {0, 0}
end
redis.call('ZADD', key, now_ms, member)
redis.call('PEXPIRE', key, window_ms)
return {1, limit - count - 1}
"""


class RateLimitResult(BaseModel):
    """Outcome of a check_and_consume call."""

    allowed: bool
    remaining: int
    # Sorted-set member holding the consumed slot; pass to release() to hand it back
    member: Optional[str] = None


class SlidingWindowRateLimiter:
    """Sliding-window-log limiter over a Redis sorted set."""

    def __init__(self, redis: Optional[Redis] = None) -> None:
        self._redis = redis
        self._script = None

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def check_and_consume(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """
        Consume one slot for `key` if fewer than `limit` were consumed in the
        trailing `window_seconds`.

        Redis errors propagate: an unavailable limiter is an infrastructure
        failure, not an implicit allow.
        """
        if self._script is None:
            self._script = self.redis.register_script(_SLIDING_WINDOW_SCRIPT)

        now_ms = int(time.time() * 1000)
        member = f"{now_ms}-{uuid.uuid4().hex}"
        allowed, remaining = self._script(
            keys=[key],
            args=[now_ms, window_seconds * 1000, limit, member],
        )
        if not int(allowed):
            return RateLimitResult(allowed=False, remaining=0)
        return RateLimitResult(allowed=True, remaining=int(remaining), member=member)

    def release(self, key: str, member: str) -> None:
        """Return a consumed slot, e.g. when the guarded operation did not happen."""
        self.redis.zrem(key, member)
