"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (in-process → Redis, in-memory → HTTP, etc.)
- Unit testing with mock implementations
- Clear separation of concerns

Usage:
    ```python
    from query_cache.protocols import CacheStore, DataSource

    # Type hints work with any implementation
    store: CacheStore = MemoryCacheStore()  # works
    store: CacheStore = RedisCacheStore()   # also works
    ```
"""

from .cache_store import CacheStore
from .data_source import DataSource, SourceResult

__all__ = [
    "CacheStore",
    "DataSource",
    "SourceResult",
]
