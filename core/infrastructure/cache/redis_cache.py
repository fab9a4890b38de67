"""
Redis-backed read-through cache.

Values are JSON documents. Every backend error is logged and swallowed:
the cache is never authoritative, so a broken Redis only costs latency.
"""
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from core.application.interfaces import ICacheService


logger = logging.getLogger(__name__)

# Characters with meaning in Redis MATCH patterns
GLOB_SPECIAL = frozenset("\\*?[]^")


def escape_glob(value: str) -> str:
    """Backslash-escape value so a Redis MATCH pattern matches it literally."""
    return "".join(f"\\{c}" if c in GLOB_SPECIAL else c for c in value)


class RedisCacheService(ICacheService):
    """
    Cache service over redis.asyncio.

    All keys are namespaced with key_prefix so delete_pattern can never
    touch keys owned by another application sharing the instance.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "kasir:",
        default_ttl: int = 1800,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL
            key_prefix: Namespace prepended to every key
            default_ttl: TTL in seconds when set() gets none
            client: Optional pre-built client
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self._redis_client: Optional[aioredis.Redis] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            self._redis_client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        try:
            await self._redis_client.ping()
            logger.info(f"✅ Connected to Redis: {self.redis_url}")
        except RedisError as e:
            logger.error(f"Redis not reachable, cache will miss: {e}")

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis_client is not None:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("✅ Disconnected from Redis")

    async def get(self, key: str) -> Optional[Any]:
        if self._redis_client is None:
            return None
        try:
            value = await self._redis_client.get(self._key(key))
        except RedisError as e:
            logger.error(f"Redis get error for {key}: {e}")
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning(f"Dropping undecodable cache entry {key}")
            await self.delete(key)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if self._redis_client is None:
            return
        try:
            await self._redis_client.set(
                self._key(key),
                json.dumps(value, default=str),
                ex=ttl or self.default_ttl,
            )
            logger.debug(f"Cache set: {key}")
        except RedisError as e:
            logger.error(f"Redis set error for {key}: {e}")

    async def delete(self, *keys: str) -> None:
        if self._redis_client is None or not keys:
            return
        try:
            await self._redis_client.delete(*(self._key(k) for k in keys))
            logger.debug(f"Cache deleted: {keys}")
        except RedisError as e:
            logger.error(f"Redis delete error for {keys}: {e}")

    async def delete_pattern(self, pattern: str) -> None:
        if self._redis_client is None:
            return
        try:
            matched = [key async for key in self._redis_client.scan_iter(match=self._key(pattern))]
            if matched:
                await self._redis_client.delete(*matched)
                logger.debug(f"Cache pattern deleted: {pattern} ({len(matched)} keys)")
        except RedisError as e:
            logger.error(f"Redis delete pattern error for {pattern}: {e}")

    async def delete_prefix(self, prefix: str) -> None:
        await self.delete_pattern(f"{escape_glob(prefix)}*")

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"
