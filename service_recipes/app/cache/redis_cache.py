"""
Redis caching layer for the Recipes Service.
"""

from typing import Optional, Union

import redis.asyncio as redis
from shared.logging import get_logger
from shared.errors import CacheUnavailable
from .base import CacheLayer, CACHE_MISS, _CacheMiss


class RedisCache(CacheLayer):
    """Redis-backed blob cache. Keys never expire on their own."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("recipes.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Start the Redis cache."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

        # A cache that is down at boot only costs performance
        try:
            await self.redis.ping()
            self.logger.info("Redis cache started")
        except redis.RedisError as e:
            self.logger.warning("Redis not reachable at startup", error=str(e))

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    async def get(self, key: str) -> Union[str, _CacheMiss]:
        client = self._client("get")
        try:
            value = await client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailable("get", details={"key": key, "error": str(e)}) from e
        if value is None:
            return CACHE_MISS
        return value

    async def set(self, key: str, blob: str) -> None:
        client = self._client("set")
        try:
            await client.set(key, blob)
        except redis.RedisError as e:
            raise CacheUnavailable("set", details={"key": key, "error": str(e)}) from e
        self.logger.debug("Cache populated", cache_key=key, size=len(blob))

    async def delete(self, key: str) -> None:
        client = self._client("delete")
        try:
            await client.delete(key)
        except redis.RedisError as e:
            raise CacheUnavailable("delete", details={"key": key, "error": str(e)}) from e
        self.logger.debug("Cache key evicted", cache_key=key)

    async def health_check(self) -> bool:
        """Check Redis health."""
        if self.redis is None:
            return False
        try:
            await self.redis.ping()
            return True
        except redis.RedisError:
            return False

    def _client(self, operation: str) -> redis.Redis:
        if self.redis is None:
            raise CacheUnavailable(operation, "Cache not started")
        return self.redis
