"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from query_cache.entities import ResultPage


class QueryResponse(BaseModel):
    """Response envelope for a list query.

    Serialized with camelCase keys:
    - data: records on the page
    - page / pageSize: the page actually served (pageSize after clamping)
    - hasNext: whether another page exists
    - totalCount: only present when the data source reports it
    """

    model_config = ConfigDict(populate_by_name=True)

    data: list[dict[str, Any]] = Field(default_factory=list, description="Records on this page")
    page: int = Field(..., description="1-based page number", ge=1)
    page_size: int = Field(..., alias="pageSize", description="Records per page", ge=1)
    has_next: bool = Field(..., alias="hasNext", description="Whether a following page exists")
    total_count: int | None = Field(
        None,
        alias="totalCount",
        description="Total matching records, when the data source can count them",
        ge=0,
    )

    @classmethod
    def from_page(cls, page: ResultPage) -> "QueryResponse":
        return cls(
            data=list(page.items),
            page=page.page_number,
            page_size=page.page_size,
            has_next=page.has_next,
            total_count=page.total_count,
        )


class RecordResponse(BaseModel):
    """Response envelope for a single-record fetch."""

    data: dict[str, Any] = Field(..., description="The requested record")


class InvalidateResponse(BaseModel):
    """Response DTO for cache invalidation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of cache entries removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    resources: list[str] = Field(default_factory=list, description="Registered resource names")
