"""
Redis connection used by the rate limiter.

Connection parameters are taken apart from REDIS_URL and combined with the
separate REDIS_DB / pool / retry settings; a rediss:// URL turns on TLS. The
client is optional: when Redis is disabled or unreachable every call returns
None and callers let the request through.
"""
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlsplit

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.commands.core import AsyncScript
from redis.exceptions import RedisError

from core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379

# Sorted set of admitted request timestamps. Entries older than the window are
# trimmed first; the request is admitted while fewer than `limit` remain.
# KEYS[1] = window key; ARGV = now, window, limit, member
# Returns {admitted, count including this request if admitted, oldest timestamp}
SLIDING_WINDOW_SCRIPT = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
local count = redis.call('ZCARD', KEYS[1])
local admitted = 0
if count < tonumber(ARGV[3]) then
    redis.call('ZADD', KEYS[1], now, ARGV[4])
    redis.call('EXPIRE', KEYS[1], window)
    count = count + 1
    admitted = 1
end

local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')[2]
return {admitted, count, tonumber(oldest or now)}
"""

# Counter that starts expiring on its first increment.
# KEYS[1] = counter key; ARGV = window
# Returns {count including this request, seconds until the counter resets}
FIXED_WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return {count, redis.call('TTL', KEYS[1])}
"""


@dataclass(frozen=True)
class RedisOptions:
    """Everything needed to open a connection pool."""

    host: str = "localhost"
    port: int = DEFAULT_PORT
    username: str | None = None
    password: str | None = None
    db: int = 0
    tls: bool = False
    tls_verify: bool = True
    pool_size: int = 10
    max_retries: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisOptions":
        """
        Combine REDIS_URL with the standalone Redis settings.

        Only scheme, credentials, host and port are read from the URL; the
        database number always comes from REDIS_DB.

        Raises:
            ValueError: If the URL scheme is not redis or rediss.
        """
        url = urlsplit(settings.redis_url)
        if url.scheme not in ("redis", "rediss"):
            raise ValueError(f"Unsupported Redis URL scheme: {url.scheme!r}")
        return cls(
            host=url.hostname or "localhost",
            port=url.port or DEFAULT_PORT,
            username=unquote(url.username) if url.username else None,
            password=unquote(url.password) if url.password else None,
            db=settings.redis_db,
            tls=url.scheme == "rediss",
            tls_verify=settings.redis_tls_verify,
            pool_size=settings.redis_pool_size,
            max_retries=settings.redis_max_retries,
        )

    def connection_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "db": self.db,
            "max_connections": self.pool_size,
            "retry": Retry(ExponentialBackoff(), self.max_retries),
        }
        if self.tls:
            kwargs["ssl"] = True
            kwargs["ssl_cert_reqs"] = "required" if self.tls_verify else "none"
        return kwargs


class RedisClient:
    """Pooled async client exposing the two rate limit windows."""

    def __init__(self, options: RedisOptions, enabled: bool = True) -> None:
        self._options = options
        self._enabled = enabled
        self._client: Redis | None = None
        self._sliding_window: AsyncScript | None = None
        self._fixed_window: AsyncScript | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Open the pool and check it with a PING; stay disconnected on failure."""
        if not self._enabled:
            logger.info("redis_disabled")
            return

        client = Redis(**self._options.connection_kwargs())
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.warning(
                "redis_connect_failed",
                extra={"host": self._options.host, "port": self._options.port, "error": str(e)},
            )
            await client.aclose()
            return

        # Scripts are sent lazily: EVALSHA first, SCRIPT LOAD on NOSCRIPT
        self._sliding_window = client.register_script(SLIDING_WINDOW_SCRIPT)
        self._fixed_window = client.register_script(FIXED_WINDOW_SCRIPT)
        self._client = client
        logger.info(
            "redis_connected",
            extra={"host": self._options.host, "db": self._options.db, "tls": self._options.tls},
        )

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        self._sliding_window = None
        self._fixed_window = None
        logger.info("redis_closed")

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def sliding_window(
        self, key: str, now: int, window: int, limit: int, member: str,
    ) -> tuple[bool, int, int] | None:
        """
        Record one request in a sliding window, if it fits.

        Returns:
            (admitted, requests in window, timestamp of the oldest one), or None
            if Redis could not answer.
        """
        result = await self._run(self._sliding_window, key, now, window, limit, member)
        if result is None:
            return None
        admitted, count, oldest = result
        return bool(admitted), int(count), int(oldest)

    async def fixed_window(self, key: str, window: int) -> tuple[int, int] | None:
        """
        Count one request in a fixed window.

        Returns:
            (requests counted so far, seconds until reset), or None if Redis
            could not answer.
        """
        result = await self._run(self._fixed_window, key, window)
        if result is None:
            return None
        count, ttl = result
        return int(count), int(ttl)

    async def _run(self, script: AsyncScript | None, key: str, *args: Any) -> list | None:
        if script is None:
            return None
        try:
            return await script(keys=[key], args=list(args))
        except RedisError as e:
            logger.warning("redis_script_failed", extra={"key": key, "error": str(e)})
            return None
