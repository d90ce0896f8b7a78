"""HTTP handlers for query operations.

Handlers convert between service results and DTOs (API contracts).
They handle HTTP concerns like status codes, cache headers, and the mapping
of domain errors onto error responses:

    ParseError                     -> 400 Bad Request
    UnknownResourceError           -> 404 Not Found
    ExecutionError(NOT_FOUND)      -> 404 Not Found
    ExecutionError(SOURCE_FAILURE) -> 503 Service Unavailable (retryable)
    CacheStoreError                -> 503 Service Unavailable (invalidation only)
"""

from fastapi import Response, status
from fastapi.responses import JSONResponse

from query_cache.dto import HealthCheckResponse, InvalidateResponse, QueryResponse, RecordResponse
from query_cache.errors import (
    CacheStoreError,
    ExecutionError,
    ExecutionErrorKind,
    ParseError,
    QueryCacheError,
    UnknownResourceError,
)
from query_cache.services import QueryResult, QueryService
from query_cache.services.request_parser import RawParams

CACHE_HEADER = "X-Cache"
KEY_HEADER = "X-Cache-Key"


def status_for(error: QueryCacheError) -> int:
    if isinstance(error, ParseError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, UnknownResourceError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ExecutionError) and error.kind is ExecutionErrorKind.NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (ExecutionError, CacheStoreError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(error: QueryCacheError) -> JSONResponse:
    """Render a domain error as a flat `{error, message, details}` body."""
    headers = None
    if isinstance(error, ExecutionError) and error.retryable:
        headers = {"Retry-After": "1"}
    return JSONResponse(
        status_code=status_for(error),
        content=error.to_response().model_dump(),
        headers=headers,
    )


def _set_cache_headers(response: Response, result: QueryResult) -> None:
    response.headers[CACHE_HEADER] = "HIT" if result.cache_hit else "MISS"
    response.headers[KEY_HEADER] = result.cache_key


class QueryHandler:
    """HTTP handlers for query operations.

    This handler delegates business logic to QueryService
    and handles HTTP-specific concerns like:
    - Converting result pages to DTOs
    - Setting status codes and cache headers
    - Error handling and responses

    Example:
        ```python
        from query_cache.services import QueryService
        from query_cache.handlers import QueryHandler

        handler = QueryHandler(query_service=service)

        # Use in FastAPI route
        @app.get("/resources/{resource}", response_model=QueryResponse)
        async def list_records(resource: str, request: Request, response: Response):
            return await handler.list_records(resource, request.query_params, response)
        ```
    """

    def __init__(self, query_service: QueryService) -> None:
        """Initialize the query handler.

        Args:
            query_service: The query service for business logic (required).
        """
        self._service = query_service

    async def list_records(self, resource: str, params: RawParams, response: Response) -> QueryResponse:
        """Handle GET /resources/{resource} requests.

        Args:
            resource: Resource name from the path
            params: Raw query parameters
            response: Outgoing response, for cache headers

        Returns:
            QueryResponse envelope

        Raises:
            QueryCacheError: Rendered by the app's error handler
        """
        result = await self._service.query(resource, params)

        _set_cache_headers(response, result)
        return QueryResponse.from_page(result.page)

    async def get_record(self, resource: str, record_id: str, params: RawParams, response: Response) -> RecordResponse:
        """Handle GET /resources/{resource}/{record_id} requests.

        Args:
            resource: Resource name from the path
            record_id: Primary key from the path
            params: Raw query parameters (fields and with/expand apply)
            response: Outgoing response, for cache headers

        Returns:
            RecordResponse with the single record

        Raises:
            ExecutionError: NOT_FOUND if the record does not exist
        """
        result = await self._service.fetch_one(resource, record_id, params)

        _set_cache_headers(response, result)
        return RecordResponse(data=result.page.items[0])

    async def invalidate(self, resource: str) -> InvalidateResponse:
        """Handle DELETE /resources/{resource}/cache requests.

        Returns:
            InvalidateResponse with the number of entries dropped

        Raises:
            UnknownResourceError: For unregistered resources
            CacheStoreError: If the cache is unreachable
        """
        count = await self._service.invalidate(resource)

        return InvalidateResponse(
            success=True,
            deleted_count=count,
            message=f"Invalidated cached queries for '{resource}'",
        )

    async def get_stats(self) -> dict:
        """Handle GET /stats requests."""
        return await self._service.get_stats()

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        A cache outage only degrades the service, since queries still run
        directly against their data sources.
        """
        is_healthy = await self._service.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "degraded",
            cache_healthy=is_healthy,
            resources=self._service.registry.names(),
        )
