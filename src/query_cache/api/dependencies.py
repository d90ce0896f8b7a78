"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Annotated, AsyncIterator, Callable

from fastapi import Depends, FastAPI, Request

from query_cache.config import settings
from query_cache.handlers import QueryHandler
from query_cache.logging import configure_logging, get_logger
from query_cache.protocols import CacheStore
from query_cache.repositories import MemoryCacheStore, RedisCacheStore
from query_cache.services import QueryService, ResourceRegistry

logger = get_logger(__name__)


def get_query_service(request: Request) -> QueryService:
    """Dependency injection for QueryService from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The QueryService instance from app.state

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "query_service", None)
    if service is None:
        raise RuntimeError("QueryService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> QueryHandler:
    """Dependency injection for QueryHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The QueryHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "query_handler", None)
    if handler is None:
        raise RuntimeError("QueryHandler not initialized. Check lifespan setup.")
    return handler


def build_cache_store() -> CacheStore:
    """Create the result cache selected by CACHE_BACKEND."""
    if settings.uses_redis:
        return RedisCacheStore.create()
    return MemoryCacheStore.create()


def make_lifespan(
    registry: ResourceRegistry,
    cache_store: CacheStore | None = None,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Build the lifespan context manager for a registry.

    Args:
        registry: Resources served by the app, registered by the host
        cache_store: Result cache. If None, chosen from settings.

    Returns:
        An asynccontextmanager suitable for FastAPI(lifespan=...)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize all layers and store them in app.state:

        1. Cache store (data access) - created explicitly
        2. Service (business logic) - stored in app.state.query_service
        3. Handler (HTTP endpoints) - stored in app.state.query_handler
        """
        configure_logging("query_cache", settings.log_level, settings.log_json)

        store = cache_store or build_cache_store()
        query_service = QueryService.create(registry=registry, cache_store=store)
        query_handler = QueryHandler(query_service=query_service)

        app.state.cache_store = store
        app.state.query_service = query_service
        app.state.query_handler = query_handler

        logger.info(
            "Query service initialized",
            resources=registry.names(),
            cache_backend=type(store).__name__,
            ttl=settings.cache_ttl,
            cache_healthy=await query_service.is_healthy(),
        )

        yield

        close = getattr(store, "close", None)
        if close is not None:
            await close()

        del app.state.query_handler
        del app.state.query_service
        del app.state.cache_store
        logger.info("Query service shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[QueryHandler, Depends(get_handler)]
ServiceDep = Annotated[QueryService, Depends(get_query_service)]
