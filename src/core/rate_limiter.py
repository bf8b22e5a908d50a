"""Redis-based per-user rate limiter."""
import logging
import time
import uuid

from core.rate_limit_config import (
    RATE_LIMITS,
    OperationType,
    RateLimitResult,
)
from core.redis import RedisClient

logger = logging.getLogger(__name__)

MINUTE = 60
DAY = 86400


def _open_result(limit: int) -> RateLimitResult:
    """Result used whenever Redis cannot answer: requests are let through."""
    return RateLimitResult(allowed=True, limit=limit, remaining=limit, reset=0, retry_after=0)


class RedisRateLimiter:
    """Sliding window per minute, fixed window per day. Fails open without Redis."""

    def __init__(self, redis_client: RedisClient | None) -> None:
        self._redis = redis_client

    async def check(self, user_id: str, operation_type: OperationType) -> RateLimitResult:
        """Check whether the user may perform one more operation of this type."""
        config = RATE_LIMITS[operation_type]

        if self._redis is None or not self._redis.is_connected:
            logger.warning("redis_unavailable", extra={"operation": "rate_limit"})
            return _open_result(config.requests_per_minute)

        now = int(time.time())

        minute_key = f"rate:{user_id}:{operation_type.value}:min"
        minute_result = await self._check_sliding_window(
            minute_key, config.requests_per_minute, MINUTE, now,
        )
        if not minute_result.allowed:
            self._log_exceeded(user_id, operation_type, "per_minute")
            return minute_result

        daily_pool = "sensitive" if operation_type == OperationType.SENSITIVE else "general"
        day_key = f"rate:{user_id}:daily:{daily_pool}"
        day_result = await self._check_fixed_window(
            day_key, config.requests_per_day, DAY, now,
        )
        if not day_result.allowed:
            self._log_exceeded(user_id, operation_type, "daily")
            return day_result

        # Both passed; the per-minute window is the one clients care about
        return minute_result

    @staticmethod
    def _log_exceeded(user_id: str, operation_type: OperationType, limit_type: str) -> None:
        logger.warning(
            "rate_limit_exceeded",
            extra={
                "user_id": user_id,
                "operation": operation_type.value,
                "limit_type": limit_type,
            },
        )

    async def _check_sliding_window(
        self, key: str, max_requests: int, window_seconds: int, now: int,
    ) -> RateLimitResult:
        state = await self._redis.sliding_window(
            key, now, window_seconds, max_requests, uuid.uuid4().hex,
        )
        if state is None:
            return _open_result(max_requests)

        admitted, count, oldest = state
        if admitted:
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                remaining=max(0, max_requests - count),
                reset=now + window_seconds,
                retry_after=0,
            )
        # A slot frees up once the oldest entry leaves the window
        reset = oldest + window_seconds
        return RateLimitResult(
            allowed=False,
            limit=max_requests,
            remaining=0,
            reset=reset,
            retry_after=max(1, reset - now),
        )

    async def _check_fixed_window(
        self, key: str, max_requests: int, window_seconds: int, now: int,
    ) -> RateLimitResult:
        state = await self._redis.fixed_window(key, window_seconds)
        if state is None:
            return _open_result(max_requests)

        count, ttl = state
        allowed = count <= max_requests
        return RateLimitResult(
            allowed=allowed,
            limit=max_requests,
            remaining=max(0, max_requests - count),
            reset=now + ttl if ttl > 0 else now + window_seconds,
            retry_after=0 if allowed else max(1, ttl),
        )
