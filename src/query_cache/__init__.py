"""Query Cache - cached, declarative query resolution for collection endpoints.

This package provides a layered architecture for query endpoints:

Layers:
    - protocols: Interface contracts (CacheStore, DataSource)
    - repositories: Cache stores and data sources
    - services: Parsing, key derivation, execution, pagination, orchestration
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from query_cache.repositories import MemoryCacheStore, MemoryDataSource
    from query_cache.services import QueryService, ResourceRegistry

    registry = ResourceRegistry()
    registry.register(schema, MemoryDataSource.create(records, schema=schema))

    service = QueryService.create(registry=registry, cache_store=MemoryCacheStore())
    result = await service.query("users", {"filter[name]": "contains:al", "sort": "name:asc"})
    ```

For HTTP API:
    ```python
    from query_cache.api.app import app, create_app
    ```
"""

from query_cache.config import get_redis_client, settings
from query_cache.entities import (
    CacheEntryEntity,
    FieldSpec,
    FieldType,
    FilterClause,
    FilterOperator,
    QuerySpec,
    ResourceSchema,
    ResultPage,
    SortClause,
    SortDirection,
)
from query_cache.errors import (
    CacheStoreError,
    DataSourceUnavailableError,
    ExecutionError,
    ExecutionErrorKind,
    ParseError,
    ParseErrorKind,
    RecordNotFoundError,
    UnknownResourceError,
)
from query_cache.handlers import QueryHandler
from query_cache.protocols import CacheStore, DataSource, SourceResult
from query_cache.repositories import (
    HttpDataSource,
    MemoryCacheStore,
    MemoryDataSource,
    RedisCacheStore,
    Relation,
)
from query_cache.services import (
    QueryExecutor,
    QueryResult,
    QueryService,
    RequestParser,
    ResourceRegistry,
    assemble,
    derive_key,
)

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheStore",
    "DataSource",
    "SourceResult",
    # Services (business logic)
    "QueryService",
    "QueryResult",
    "QueryExecutor",
    "RequestParser",
    "ResourceRegistry",
    "assemble",
    "derive_key",
    # Handlers (HTTP)
    "QueryHandler",
    # Repositories (data access)
    "MemoryCacheStore",
    "RedisCacheStore",
    "MemoryDataSource",
    "HttpDataSource",
    "Relation",
    # Entities (domain models)
    "CacheEntryEntity",
    "FieldSpec",
    "FieldType",
    "FilterClause",
    "FilterOperator",
    "QuerySpec",
    "ResourceSchema",
    "ResultPage",
    "SortClause",
    "SortDirection",
    # Errors
    "CacheStoreError",
    "DataSourceUnavailableError",
    "ExecutionError",
    "ExecutionErrorKind",
    "ParseError",
    "ParseErrorKind",
    "RecordNotFoundError",
    "UnknownResourceError",
]
