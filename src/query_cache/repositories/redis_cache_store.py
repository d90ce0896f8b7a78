"""Redis implementation of CacheStore.

Entries are JSON strings written with SET ... EX, so Redis owns expiry.
Prefix invalidation walks keys with SCAN and removes them with UNLINK.
"""

import json
import re
import time
from typing import Any, Callable

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from query_cache.config import get_redis_client, settings
from query_cache.entities import CacheEntryEntity
from query_cache.errors import CacheStoreError

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _escape_glob(value: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisCacheStore:
    """Redis-backed result cache.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Shared by every worker pointing at the same Redis, so invalidations are
    visible across processes. Redis errors are raised as CacheStoreError.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis | None = None,
        namespace: str | None = None,
        scan_batch: int = 500,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the Redis cache store.

        Args:
            redis_client: asyncio Redis client. If None, creates default.
            namespace: Key namespace, used by clear() and count(). Defaults to settings.
            scan_batch: COUNT hint for SCAN and batch size for UNLINK.
            clock: Time source returning Unix seconds.
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace or settings.cache_namespace
        self._scan_batch = scan_batch
        self._clock = clock

    @classmethod
    def create(
        cls,
        redis_client: aioredis.Redis | None = None,
        namespace: str | None = None,
    ) -> "RedisCacheStore":
        """Factory method to create RedisCacheStore with defaults.

        Args:
            redis_client: Redis client. If None, built from settings.
            namespace: Key namespace. If None, uses settings.

        Returns:
            Configured RedisCacheStore
        """
        return cls(redis_client=redis_client, namespace=namespace)

    async def get(self, key: str) -> CacheEntryEntity | None:
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            raise CacheStoreError(f"Redis GET failed: {e}", {"key": key}) from e

        if raw is None:
            return None

        try:
            document = json.loads(raw)
            entry = CacheEntryEntity(
                key=key,
                payload=document["payload"],
                created_at=float(document["created_at"]),
                ttl=int(document["ttl"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            # Unreadable entries are dropped and reported as a miss.
            await self.invalidate(key)
            return None

        if entry.is_expired(self._clock()):
            await self.invalidate(key)
            return None
        return entry

    async def put(self, key: str, payload: dict[str, Any], ttl: int) -> None:
        document = json.dumps(
            {"payload": payload, "created_at": self._clock(), "ttl": ttl},
            default=str,
        )
        try:
            await self._client.set(key, document, ex=ttl)
        except RedisError as e:
            raise CacheStoreError(f"Redis SET failed: {e}", {"key": key}) from e

    async def invalidate(self, key: str) -> bool:
        try:
            removed = await self._client.unlink(key)
        except RedisError as e:
            raise CacheStoreError(f"Redis UNLINK failed: {e}", {"key": key}) from e
        return removed > 0

    async def invalidate_by_prefix(self, prefix: str) -> int:
        removed = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(match=f"{_escape_glob(prefix)}*", count=self._scan_batch):
                batch.append(key)
                if len(batch) >= self._scan_batch:
                    removed += await self._client.unlink(*batch)
                    batch = []
            if batch:
                removed += await self._client.unlink(*batch)
        except RedisError as e:
            raise CacheStoreError(f"Redis prefix invalidation failed: {e}", {"prefix": prefix}) from e
        return removed

    async def clear(self) -> int:
        return await self.invalidate_by_prefix(f"{self._namespace}:")

    async def count(self) -> int:
        count = 0
        try:
            async for _ in self._client.scan_iter(match=f"{_escape_glob(self._namespace)}:*", count=self._scan_batch):
                count += 1
        except RedisError as e:
            raise CacheStoreError(f"Redis SCAN failed: {e}") from e
        return count

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def get_stats(self) -> dict:
        return {
            "backend": "redis",
            "namespace": self._namespace,
            "total_entries": await self.count(),
        }

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    @property
    def client(self) -> aioredis.Redis:
        """Get the Redis client."""
        return self._client
