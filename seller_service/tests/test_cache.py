"""
Tests for CacheService: seller keying and best-effort failure handling.
"""
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from seller_service.app.services.cache import CacheService


class FakeRedis:
    """Minimal in-memory stand-in for redis.asyncio.Redis."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


class BrokenRedis:
    """Every operation fails as if Redis were down."""

    async def get(self, key):
        raise RedisConnectionError("Connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("Connection refused")

    async def delete(self, key):
        raise RedisConnectionError("Connection refused")


SNAPSHOT = {"id": 5, "user_id": 42, "business_name": "Acme", "status": "pending"}


@pytest.mark.asyncio
async def test_set_seller_writes_both_keys_with_ttl():
    redis = FakeRedis()
    cache = CacheService(redis, seller_ttl=300)

    await cache.set_seller(SNAPSHOT)

    assert set(redis.store) == {"seller:id:5", "seller:userId:42"}
    assert redis.ttls == {"seller:id:5": 300, "seller:userId:42": 300}
    assert json.loads(redis.store["seller:id:5"]) == SNAPSHOT
    assert await cache.get_seller(5) == SNAPSHOT
    assert await cache.get_seller_by_user(42) == SNAPSHOT


@pytest.mark.asyncio
async def test_invalidate_seller_removes_both_keys():
    redis = FakeRedis()
    cache = CacheService(redis)
    await cache.set_seller(SNAPSHOT)

    await cache.invalidate_seller(5, 42)

    assert redis.store == {}
    assert await cache.get_seller(5) is None


@pytest.mark.asyncio
async def test_delete_reports_whether_key_existed():
    cache = CacheService(FakeRedis())
    await cache.set("k", {"a": 1})
    assert await cache.delete("k") is True
    assert await cache.delete("k") is False


@pytest.mark.asyncio
async def test_unavailable_redis_degrades_to_miss():
    cache = CacheService(BrokenRedis())

    assert await cache.get_seller(5) is None
    assert await cache.set("seller:id:5", SNAPSHOT) is False
    assert await cache.delete("seller:id:5") is False
    # Neither helper raises
    await cache.set_seller(SNAPSHOT)
    await cache.invalidate_seller(5, 42)


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss():
    redis = FakeRedis()
    redis.store["seller:id:5"] = "{not json"
    cache = CacheService(redis)
    assert await cache.get_seller(5) is None


@pytest.mark.asyncio
async def test_disabled_cache_is_inert():
    redis = FakeRedis()
    cache = CacheService(redis, enabled=False)

    await cache.set_seller(SNAPSHOT)
    assert redis.store == {}
    assert await cache.get_seller(5) is None

    assert CacheService(None).enabled is False


@pytest.mark.asyncio
async def test_service_reads_through_broken_cache(seller_service, test_seller):
    """A Redis outage never fails a lookup or a write."""
    seller_service.cache = CacheService(BrokenRedis())

    seller = await seller_service.get_seller_by_id(test_seller.id)
    assert seller["id"] == test_seller.id

    seller = await seller_service.increment_product_count(test_seller.id)
    assert seller["total_products"] == 1
