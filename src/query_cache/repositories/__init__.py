"""Repository layer for data access.

This layer holds the concrete result caches and data sources behind the
protocol-based interfaces. This enables:
- Easy swapping of implementations (in-process → Redis, in-memory → HTTP, etc.)
- Unit testing with mock implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from query_cache.protocols import CacheStore, DataSource

from .http_data_source import HttpDataSource
from .memory_cache_store import MemoryCacheStore
from .memory_data_source import MemoryDataSource, Relation
from .redis_cache_store import RedisCacheStore

__all__ = [
    "CacheStore",
    "DataSource",
    "HttpDataSource",
    "MemoryCacheStore",
    "MemoryDataSource",
    "RedisCacheStore",
    "Relation",
]
