"""
Tests for the Redis cache store, against an in-memory stand-in for the client.
"""

import fnmatch
import json
import re
from datetime import date
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from query_cache.errors import CacheStoreError
from query_cache.repositories import RedisCacheStore


def _glob(pattern):
    # Redis escapes with a backslash; fnmatch escapes with a one-char class.
    return re.sub(r"\\(.)", r"[\1]", pattern)


class FakeRedis:
    """Implements the handful of asyncio client calls the store uses."""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.unlink_calls = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def unlink(self, *keys):
        self.unlink_calls.append(keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match=None, count=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, _glob(match)):
                yield key

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def redis_store(redis_client, clock):
    return RedisCacheStore(redis_client=redis_client, namespace="test", scan_batch=2, clock=clock)


@pytest.mark.asyncio
async def test_put_sets_expiry_on_the_key(redis_store, redis_client):
    """Test entries are written with SET ... EX so Redis owns expiry."""
    await redis_store.put("test:users:a", {"items": []}, ttl=30)

    assert redis_client.expiry["test:users:a"] == 30
    document = json.loads(redis_client.data["test:users:a"])
    assert document == {"payload": {"items": []}, "created_at": 1_000.0, "ttl": 30}


@pytest.mark.asyncio
async def test_get_decodes_entry(redis_store):
    """Test a stored entry is rebuilt."""
    await redis_store.put("test:users:a", {"items": [{"id": 1}]}, ttl=30)

    entry = await redis_store.get("test:users:a")

    assert entry.key == "test:users:a"
    assert entry.payload == {"items": [{"id": 1}]}
    assert entry.expires_at == 1_030.0


@pytest.mark.asyncio
async def test_dates_are_stored_as_iso_strings(redis_store):
    """Test non-JSON values in payloads are written as strings."""
    await redis_store.put("test:users:a", {"items": [{"joined": date(2020, 1, 2)}]}, ttl=30)

    entry = await redis_store.get("test:users:a")

    assert entry.payload["items"][0]["joined"] == "2020-01-02"


@pytest.mark.asyncio
async def test_get_missing_key(redis_store):
    """Test a missing key is a miss."""
    assert await redis_store.get("test:users:nope") is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_dropped(redis_store, redis_client):
    """Test unreadable values are removed and reported as a miss."""
    redis_client.data["test:users:a"] = "not json"

    assert await redis_store.get("test:users:a") is None
    assert "test:users:a" not in redis_client.data


@pytest.mark.asyncio
async def test_expired_entry_is_a_miss(redis_store, redis_client, clock):
    """Test an entry past its TTL is never served, even if Redis still holds it."""
    await redis_store.put("test:users:a", {}, ttl=30)
    clock.advance(30)

    assert await redis_store.get("test:users:a") is None
    assert "test:users:a" not in redis_client.data


@pytest.mark.asyncio
async def test_invalidate_by_prefix_batches_unlinks(redis_store, redis_client):
    """Test prefix invalidation scans and unlinks in batches."""
    for name in ("a", "b", "c"):
        await redis_store.put(f"test:users:{name}", {}, ttl=30)
    await redis_store.put("test:posts:a", {}, ttl=30)

    removed = await redis_store.invalidate_by_prefix("test:users:")

    assert removed == 3
    assert [len(call) for call in redis_client.unlink_calls] == [2, 1]
    assert list(redis_client.data) == ["test:posts:a"]


@pytest.mark.asyncio
async def test_prefix_glob_characters_are_escaped(redis_store, redis_client):
    """Test a prefix containing glob syntax matches literally."""
    await redis_store.put("test:us*rs:a", {}, ttl=30)
    await redis_store.put("test:users:a", {}, ttl=30)

    assert await redis_store.invalidate_by_prefix("test:us*rs:") == 1
    assert "test:users:a" in redis_client.data


@pytest.mark.asyncio
async def test_clear_and_count_stay_inside_namespace(redis_store, redis_client):
    """Test clear and count ignore keys outside the namespace."""
    redis_client.data["other:users:a"] = "{}"
    await redis_store.put("test:users:a", {}, ttl=30)
    await redis_store.put("test:posts:a", {}, ttl=30)

    assert await redis_store.count() == 2
    assert await redis_store.clear() == 2
    assert list(redis_client.data) == ["other:users:a"]


@pytest.mark.asyncio
async def test_invalidate_single_key(redis_store):
    """Test removing one key reports whether it existed."""
    await redis_store.put("test:users:a", {}, ttl=30)

    assert await redis_store.invalidate("test:users:a") is True
    assert await redis_store.invalidate("test:users:a") is False


@pytest.mark.asyncio
async def test_redis_errors_become_cache_store_errors(clock):
    """Test connection failures surface as CacheStoreError."""
    client = AsyncMock()
    client.get.side_effect = RedisConnectionError("refused")
    client.set.side_effect = RedisConnectionError("refused")
    client.unlink.side_effect = RedisConnectionError("refused")
    store = RedisCacheStore(redis_client=client, namespace="test", clock=clock)

    with pytest.raises(CacheStoreError):
        await store.get("test:users:a")
    with pytest.raises(CacheStoreError):
        await store.put("test:users:a", {}, ttl=30)
    with pytest.raises(CacheStoreError):
        await store.invalidate("test:users:a")


@pytest.mark.asyncio
async def test_health_check(redis_store, clock):
    """Test ping success and failure."""
    broken = AsyncMock()
    broken.ping.side_effect = RedisConnectionError("refused")

    assert await redis_store.health_check() is True
    assert await RedisCacheStore(redis_client=broken, namespace="test", clock=clock).health_check() is False


@pytest.mark.asyncio
async def test_stats(redis_store):
    """Test stats report backend, namespace and entry count."""
    await redis_store.put("test:users:a", {}, ttl=30)

    assert await redis_store.get_stats() == {"backend": "redis", "namespace": "test", "total_entries": 1}
