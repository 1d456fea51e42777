"""Tests for the Redis cache invalidator."""

import pytest

from fulfillment.domain.models import CacheScope
from fulfillment.infrastructure.cache import (
    LoggingCacheInvalidator,
    RedisCacheInvalidator,
    create_cache_invalidator,
)


class RecordingRedis:
    """Records the calls the invalidator makes on a redis.asyncio client."""

    def __init__(self, stored=()):
        self.stored = set(stored)
        self.deleted: list = []
        self.patterns: list = []
        self.closed = False

    async def scan_iter(self, match=None):
        self.patterns.append(match)
        prefix = match.rstrip("*")
        for name in sorted(self.stored):
            if name.startswith(prefix):
                yield name

    async def delete(self, *names):
        self.deleted.extend(names)
        self.stored.difference_update(names)
        return len(names)

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_invalidates_given_keys() -> None:
    redis = RecordingRedis()
    invalidator = RedisCacheInvalidator(redis, prefix="shop")

    await invalidator.invalidate(CacheScope.ORDER_BY_ID, [7, 8])

    assert redis.deleted == ["shop:order::7", "shop:order::8"]
    assert redis.patterns == []


@pytest.mark.asyncio
async def test_empty_keys_drop_whole_scope() -> None:
    redis = RecordingRedis(
        stored=["shop:orders::all", "shop:orders::page-2", "shop:ordersByStatus::PENDING"]
    )
    invalidator = RedisCacheInvalidator(redis, prefix="shop")

    await invalidator.invalidate(CacheScope.ORDERS)

    assert redis.patterns == ["shop:orders::*"]
    assert sorted(redis.deleted) == ["shop:orders::all", "shop:orders::page-2"]
    assert redis.stored == {"shop:ordersByStatus::PENDING"}


@pytest.mark.asyncio
async def test_empty_scope_deletes_nothing() -> None:
    redis = RecordingRedis()
    invalidator = RedisCacheInvalidator(redis)

    await invalidator.invalidate(CacheScope.PRODUCTS)

    assert redis.deleted == []


@pytest.mark.asyncio
async def test_close_closes_client() -> None:
    redis = RecordingRedis()
    await RedisCacheInvalidator(redis).close()
    assert redis.closed is True


def test_without_redis_url_uses_logging_invalidator() -> None:
    assert isinstance(create_cache_invalidator("", "fulfillment"), LoggingCacheInvalidator)
