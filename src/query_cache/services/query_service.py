"""Query service for core business logic.

This service orchestrates one request end to end:

    parse -> derive key -> cache lookup -> (miss) execute -> cache store

by coordinating the request parser, the executor, the registered data
sources and the result cache.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from query_cache.config import settings
from query_cache.entities import QuerySpec, ResultPage
from query_cache.errors import ExecutionError, ExecutionErrorKind
from query_cache.logging import get_logger
from query_cache.metrics import QueryMetrics
from query_cache.protocols import CacheStore

from .cache_keys import derive_key, resource_prefix
from .query_executor import QueryExecutor
from .request_parser import RawParams, RequestParser
from .resource_registry import Endpoint, ResourceRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a successful query.

    Attributes:
        page: The result page
        cache_hit: Whether the page was served from the cache
        cache_key: Key the page is (or would be) cached under
    """

    page: ResultPage
    cache_hit: bool
    cache_key: str


@dataclass
class _Flight:
    task: asyncio.Future
    waiters: int = 0


class QueryService:
    """Core query orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - CacheStore: can be in-process, Redis, etc.
    - DataSource (per registered resource): in-memory, HTTP, a database, etc.

    The cache is an optimization, never a correctness dependency: a cache
    that fails to answer is treated as a miss, and a cache that fails to
    store is skipped. Execution errors are never cached.

    Example:
        ```python
        from query_cache.repositories import MemoryCacheStore, MemoryDataSource
        from query_cache.services import QueryService, ResourceRegistry

        registry = ResourceRegistry()
        registry.register(user_schema, MemoryDataSource.create(users))

        service = QueryService.create(registry=registry, cache_store=MemoryCacheStore())
        result = await service.query("users", {"filter[name]": "contains:al"})
        ```
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        cache_store: CacheStore,
        parser: RequestParser | None = None,
        executor: QueryExecutor | None = None,
        ttl: int | None = None,
        single_flight: bool | None = None,
        namespace: str | None = None,
    ) -> None:
        """Initialize the query service.

        Args:
            registry: Registered resources (required).
            cache_store: Result cache backend (required).
            parser: Request parser. Defaults to one built from settings.
            executor: Query executor. Defaults to one built from settings.
            ttl: Time-to-live for cached pages in seconds, must be positive. Defaults to settings.
            single_flight: Coalesce concurrent misses on one key. Defaults to settings.
            namespace: Cache key namespace. Defaults to settings.
        """
        self._registry = registry
        self._cache = cache_store
        self._parser = parser or RequestParser.create()
        self._executor = executor or QueryExecutor.create()
        self._ttl = settings.cache_ttl if ttl is None else ttl
        if self._ttl <= 0:
            raise ValueError(f"ttl must be a positive number of seconds, got {self._ttl}")
        self._single_flight = settings.single_flight if single_flight is None else single_flight
        self._namespace = namespace or settings.cache_namespace
        self._inflight: dict[str, _Flight] = {}
        self._metrics = QueryMetrics()

    @classmethod
    def create(
        cls,
        registry: ResourceRegistry,
        cache_store: CacheStore,
        ttl: int | None = None,
        single_flight: bool | None = None,
        max_page_size: int | None = None,
        lookahead: bool | None = None,
    ) -> "QueryService":
        """Factory method to create QueryService with sensible defaults.

        Args:
            registry: Registered resources (required).
            cache_store: Result cache backend (required).
            ttl: Cache TTL in seconds. If None, uses settings.
            single_flight: Coalesce concurrent misses. If None, uses settings.
            max_page_size: Page size ceiling. If None, uses settings.
            lookahead: Fetch one extra row for exact has_next. If None, uses settings.

        Returns:
            Configured QueryService
        """
        return cls(
            registry=registry,
            cache_store=cache_store,
            parser=RequestParser.create(max_page_size=max_page_size),
            executor=QueryExecutor.create(lookahead=lookahead),
            ttl=ttl,
            single_flight=single_flight,
        )

    async def query(self, resource: str, raw_params: RawParams) -> QueryResult:
        """Resolve a list query.

        Args:
            resource: Registered resource name
            raw_params: Raw request parameters

        Returns:
            QueryResult with the page and cache outcome

        Raises:
            UnknownResourceError: If resource is not registered
            ParseError: Before any cache or data source access
            ExecutionError: If the data source fails
        """
        endpoint = self._registry.get(resource)
        spec = self._parser.parse(raw_params, endpoint.schema)
        return await self._resolve(endpoint, spec)

    async def fetch_one(self, resource: str, record_id: str, raw_params: RawParams | None = None) -> QueryResult:
        """Resolve a single-record fetch by primary key.

        Args:
            resource: Registered resource name
            record_id: Primary key value, as received in the request path
            raw_params: Raw request parameters (only fields and with/expand apply)

        Returns:
            QueryResult whose page holds exactly one record

        Raises:
            UnknownResourceError: If resource is not registered
            ParseError: On bad projection, relation or id type
            ExecutionError: NOT_FOUND if no record has that key
        """
        endpoint = self._registry.get(resource)
        spec = self._parser.parse_lookup(record_id, raw_params or {}, endpoint.schema)
        return await self._resolve(endpoint, spec, require_match=True)

    async def invalidate(self, resource: str) -> int:
        """Drop every cached page of a resource.

        Returns:
            Number of cache entries removed

        Raises:
            UnknownResourceError: If resource is not registered
            CacheStoreError: If the cache cannot be reached
        """
        self._registry.get(resource)
        removed = await self._cache.invalidate_by_prefix(resource_prefix(resource, self._namespace))
        logger.info("Resource cache invalidated", resource=resource, removed=removed)
        return removed

    async def invalidate_key(self, key: str) -> bool:
        """Drop one cached page by key."""
        removed = await self._cache.invalidate(key)
        logger.info("Cache key invalidated", key=key, removed=removed)
        return removed

    async def _resolve(self, endpoint: Endpoint, spec: QuerySpec, require_match: bool = False) -> QueryResult:
        key = derive_key(endpoint.name, spec, self._namespace)

        start_time = time.perf_counter()
        cached = await self._cached_page(key)
        lookup_time_ms = (time.perf_counter() - start_time) * 1000

        if cached is not None:
            self._metrics.record_hit(lookup_time_ms)
            logger.debug("Cache hit", resource=endpoint.name, key=key)
            if require_match and not cached.items:
                raise self._not_found(endpoint)
            return QueryResult(page=cached, cache_hit=True, cache_key=key)

        self._metrics.record_miss(lookup_time_ms)
        logger.debug("Cache miss", resource=endpoint.name, key=key)

        if self._single_flight:
            page = await self._coalesce(key, lambda: self._compute(endpoint, spec, key))
        else:
            page = await self._compute(endpoint, spec, key)

        # Checked per caller: a list query and a lookup can share one key.
        if require_match and not page.items:
            raise self._not_found(endpoint)
        return QueryResult(page=page, cache_hit=False, cache_key=key)

    async def _compute(self, endpoint: Endpoint, spec: QuerySpec, key: str) -> ResultPage:
        start_time = time.perf_counter()
        try:
            page = await self._executor.execute(endpoint.data_source, spec)
        except ExecutionError as e:
            self._metrics.record_execution((time.perf_counter() - start_time) * 1000, failed=True)
            logger.warning("Query execution failed", resource=endpoint.name, error=e.code, message=e.message)
            raise
        self._metrics.record_execution((time.perf_counter() - start_time) * 1000)

        await self._store_page(key, page)
        return page

    @staticmethod
    def _not_found(endpoint: Endpoint) -> ExecutionError:
        return ExecutionError(
            ExecutionErrorKind.NOT_FOUND,
            f"No '{endpoint.name}' record matches the requested key",
            {"resource": endpoint.name},
        )

    async def _coalesce(self, key: str, factory: Callable[[], Awaitable[ResultPage]]) -> ResultPage:
        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(task=asyncio.ensure_future(factory()))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda _, k=key, f=flight: self._release(k, f))
        else:
            self._metrics.record_coalesced()

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            # The shared execution only stops when its last waiter goes away.
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
                self._release(key, flight)
            raise
        finally:
            flight.waiters -= 1

    def _release(self, key: str, flight: _Flight) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]

    async def _cached_page(self, key: str) -> ResultPage | None:
        try:
            entry = await self._cache.get(key)
            return ResultPage.from_dict(entry.payload) if entry is not None else None
        except Exception as e:
            self._metrics.record_cache_error()
            logger.warning("Cache read failed, executing directly", key=key, error=str(e))
            return None

    async def _store_page(self, key: str, page: ResultPage) -> None:
        try:
            await self._cache.put(key, page.to_dict(), self._ttl)
        except Exception as e:
            self._metrics.record_cache_error()
            logger.warning("Cache write failed, result not cached", key=key, error=str(e))

    async def is_healthy(self) -> bool:
        """Check if the result cache is reachable."""
        return await self._cache.health_check()

    async def get_stats(self) -> dict:
        """Get cache and query statistics.

        Returns:
            Dictionary with cache store stats and query metrics
        """
        try:
            cache_stats = await self._cache.get_stats()
        except Exception as e:
            cache_stats = {"error": str(e)}
        cache_stats["ttl"] = self._ttl
        cache_stats["single_flight"] = self._single_flight
        return {
            "cache": cache_stats,
            "performance": self._metrics.to_dict(),
            "resources": self._registry.names(),
        }

    @property
    def metrics(self) -> QueryMetrics:
        """Get the live metrics (for testing)."""
        return self._metrics

    @property
    def cache_store(self) -> CacheStore:
        """Get the underlying cache store (for testing)."""
        return self._cache

    @property
    def registry(self) -> ResourceRegistry:
        return self._registry
