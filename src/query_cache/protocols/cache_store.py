"""Result cache storage protocol.

Defines the interface for any keyed store that can hold paginated result
payloads with a time-to-live.

Implementations can include:
- In-process dictionary (default)
- Redis
- Memcached
- Any other keyed store with expiry

Implementations own their synchronization: callers never lock around
get/put/invalidate. Implementations raise CacheStoreError when the backing
store is unreachable.
"""

from typing import Any, Protocol, runtime_checkable

from query_cache.entities import CacheEntryEntity


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for result cache backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Example:
        ```python
        from query_cache.protocols import CacheStore

        # Type check passes for any matching implementation
        store: CacheStore = MemoryCacheStore()
        store: CacheStore = RedisCacheStore.create()
        ```
    """

    async def get(self, key: str) -> CacheEntryEntity | None:
        """Fetch a live entry.

        An entry past its TTL is treated as a miss and evicted.

        Args:
            key: The cache key

        Returns:
            The entry, or None on a miss
        """
        ...

    async def put(self, key: str, payload: dict[str, Any], ttl: int) -> None:
        """Store a payload, replacing any existing entry for the key.

        Args:
            key: The cache key
            payload: Serialized result page
            ttl: Time-to-live in seconds
        """
        ...

    async def invalidate(self, key: str) -> bool:
        """Remove a single entry.

        Args:
            key: The cache key

        Returns:
            True if an entry was removed, False otherwise
        """
        ...

    async def invalidate_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with prefix.

        Args:
            prefix: Key prefix, usually a resource prefix

        Returns:
            Number of entries removed
        """
        ...

    async def clear(self) -> int:
        """Remove all entries owned by this store.

        Returns:
            Number of entries removed
        """
        ...

    async def count(self) -> int:
        """Count entries currently held.

        Returns:
            Number of entries
        """
        ...

    async def health_check(self) -> bool:
        """Check if the backing store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...

    async def get_stats(self) -> dict:
        """Get store statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...
