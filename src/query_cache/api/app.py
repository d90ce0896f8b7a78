from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from query_cache.api.dependencies import HandlerDep, make_lifespan
from query_cache.config import settings
from query_cache.dto import HealthCheckResponse, InvalidateResponse, QueryResponse, RecordResponse
from query_cache.errors import QueryCacheError
from query_cache.handlers import error_response
from query_cache.logging import get_logger
from query_cache.protocols import CacheStore
from query_cache.services import ResourceRegistry

logger = get_logger(__name__)


def create_app(
    registry: ResourceRegistry | None = None,
    cache_store: CacheStore | None = None,
) -> FastAPI:
    """Create the query API for a set of registered resources.

    Args:
        registry: Resources to serve. If None, serves the sample catalog.
        cache_store: Result cache. If None, chosen from settings.

    Returns:
        The FastAPI application
    """
    if registry is None:
        from query_cache.sample_data import build_registry

        registry = build_registry()

    app = FastAPI(
        title="Query Cache API",
        description="Filter, sort, project, expand and paginate registered resources with cached results",
        version="0.1.0",
        lifespan=make_lifespan(registry, cache_store),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(QueryCacheError)
    async def query_cache_exception_handler(request: Request, exc: QueryCacheError) -> Response:
        """Handle QueryCacheError."""
        logger.info("Request rejected", path=request.url.path, code=exc.code, message=exc.message)
        return error_response(exc)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Query Cache API",
            "version": "0.1.0",
            "description": "Filter, sort, project, expand and paginate registered resources with cached results",
            "resources": registry.names(),
            "endpoints": {
                "query": "/resources/{resource}",
                "record": "/resources/{resource}/{record_id}",
                "invalidate": "/resources/{resource}/cache",
                "stats": "/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.get("/stats", response_model=dict[str, Any])
    async def stats(handler: HandlerDep) -> dict[str, Any]:
        """Get cache and query statistics."""
        return await handler.get_stats()

    @app.get(
        "/resources/{resource}",
        response_model=QueryResponse,
        response_model_exclude_none=True,
    )
    async def list_records(resource: str, request: Request, response: Response, handler: HandlerDep) -> QueryResponse:
        """
        Query a resource.

        Supports filter[<field>]=<op>:<value>, sort, fields, with/expand,
        page and pageSize parameters.
        """
        return await handler.list_records(resource, request.query_params, response)

    @app.delete("/resources/{resource}/cache", response_model=InvalidateResponse)
    async def invalidate(resource: str, handler: HandlerDep) -> InvalidateResponse:
        """Drop every cached query of a resource."""
        return await handler.invalidate(resource)

    @app.get("/resources/{resource}/{record_id}", response_model=RecordResponse)
    async def get_record(
        resource: str,
        record_id: str,
        request: Request,
        response: Response,
        handler: HandlerDep,
    ) -> RecordResponse:
        """Fetch one record by primary key (supports fields and with/expand)."""
        return await handler.get_record(resource, record_id, request.query_params, response)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "query_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
