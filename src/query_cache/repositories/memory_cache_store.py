"""In-process implementation of CacheStore.

A dictionary guarded by a lock. Expiry is checked lazily on read;
purge_expired() reclaims memory held by entries nobody reads again.
"""

import copy
import threading
import time
from typing import Any, Callable

from query_cache.config import settings
from query_cache.entities import CacheEntryEntity


class MemoryCacheStore:
    """Process-local result cache.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Payloads are deep-copied on the way in and out, so no caller can mutate
    a stored entry. Safe for concurrent use from coroutines and threads.
    """

    def __init__(
        self,
        namespace: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-process store.

        Args:
            namespace: Key namespace reported in stats. Defaults to settings.
            clock: Time source returning Unix seconds (injectable for tests).
        """
        self._namespace = namespace or settings.cache_namespace
        self._clock = clock
        self._entries: dict[str, CacheEntryEntity] = {}
        self._lock = threading.Lock()
        self._evictions = 0

    @classmethod
    def create(cls, namespace: str | None = None) -> "MemoryCacheStore":
        """Factory method to create MemoryCacheStore with defaults."""
        return cls(namespace=namespace)

    async def get(self, key: str) -> CacheEntryEntity | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._evictions += 1
                return None
        return CacheEntryEntity(
            key=entry.key,
            payload=copy.deepcopy(entry.payload),
            created_at=entry.created_at,
            ttl=entry.ttl,
        )

    async def put(self, key: str, payload: dict[str, Any], ttl: int) -> None:
        entry = CacheEntryEntity(
            key=key,
            payload=copy.deepcopy(payload),
            created_at=self._clock(),
            ttl=ttl,
        )
        with self._lock:
            self._entries[key] = entry

    async def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    async def invalidate_by_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    async def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    async def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in doomed:
                del self._entries[key]
            self._evictions += len(doomed)
        return len(doomed)

    async def health_check(self) -> bool:
        return True

    async def get_stats(self) -> dict:
        with self._lock:
            return {
                "backend": "memory",
                "namespace": self._namespace,
                "total_entries": len(self._entries),
                "evictions": self._evictions,
            }
