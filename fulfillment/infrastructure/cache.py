import logging
from typing import Sequence

import redis.asyncio as aioredis

from fulfillment.domain.models import CacheScope
from fulfillment.application.interfaces import CacheInvalidator

logger = logging.getLogger(__name__)


class RedisCacheInvalidator(CacheInvalidator):
    """Ключи кэша: "{prefix}:{scope}::{key}" """

    def __init__(self, redis: aioredis.Redis, prefix: str = "fulfillment"):
        self._redis = redis
        self._prefix = prefix

    def key_for(self, scope: CacheScope, key) -> str:
        return f"{self._prefix}:{scope.value}::{key}"

    async def invalidate(self, scope: CacheScope, keys: Sequence = ()) -> None:
        if keys:
            names = [self.key_for(scope, key) for key in keys]
        else:
            pattern = f"{self._prefix}:{scope.value}::*"
            names = [name async for name in self._redis.scan_iter(match=pattern)]

        if names:
            await self._redis.delete(*names)
        logger.debug(f"Cache invalidated: {scope.value} ({len(names)} keys)")

    async def close(self) -> None:
        await self._redis.aclose()


class LoggingCacheInvalidator(CacheInvalidator):
    """Когда Redis не настроен"""

    async def invalidate(self, scope: CacheScope, keys: Sequence = ()) -> None:
        logger.debug(f"Cache invalidation skipped (no cache): {scope.value} {list(keys)}")

    async def close(self) -> None:
        pass


def create_cache_invalidator(redis_url: str, prefix: str) -> CacheInvalidator:
    if not redis_url:
        logger.info("REDIS_URL не задан, кэш не используется")
        return LoggingCacheInvalidator()
    return RedisCacheInvalidator(aioredis.from_url(redis_url, decode_responses=True), prefix=prefix)
