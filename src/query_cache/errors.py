"""Error taxonomy for query resolution and caching.

Three families are surfaced to callers:

- ParseError: bad client input, never retried
- ExecutionError: data source failures (retryable) or missing records
- UnknownResourceError: no endpoint registered under the requested name

CacheStoreError never reaches callers of the query service; cache failures
degrade to a forced miss.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str
    details: dict[str, Any] = {}


class ParseErrorKind(str, Enum):
    UNKNOWN_FIELD = "unknown_field"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_RELATION = "unknown_relation"


class ExecutionErrorKind(str, Enum):
    SOURCE_FAILURE = "source_failure"
    NOT_FOUND = "not_found"


class QueryCacheError(Exception):
    """Base exception for the query cache package."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.code, message=self.message, details=self.details)


class ParseError(QueryCacheError):
    """Raised when a request descriptor cannot be turned into a QuerySpec."""

    def __init__(self, kind: ParseErrorKind, message: str, details: dict[str, Any] | None = None):
        self.kind = kind
        super().__init__(kind.value, message, details)


class ExecutionError(QueryCacheError):
    """Raised when a planned query cannot be executed against its data source."""

    def __init__(self, kind: ExecutionErrorKind, message: str, details: dict[str, Any] | None = None):
        self.kind = kind
        super().__init__(kind.value, message, details)

    @property
    def retryable(self) -> bool:
        """Source failures are transient; a missing record is not."""
        return self.kind is ExecutionErrorKind.SOURCE_FAILURE


class UnknownResourceError(QueryCacheError):
    """Raised when no resource is registered under the requested name."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__("unknown_resource", f"Unknown resource: {resource}", {"resource": resource})


class CacheStoreError(QueryCacheError):
    """Raised by cache stores when the backing store is unreachable."""

    def __init__(self, message: str = "Cache store unavailable", details: dict[str, Any] | None = None):
        super().__init__("cache_unavailable", message, details)


class DataSourceUnavailableError(QueryCacheError):
    """Raised by data sources that cannot be reached or fail while querying."""

    def __init__(self, message: str = "Data source unavailable", details: dict[str, Any] | None = None):
        super().__init__("source_unavailable", message, details)


class RecordNotFoundError(QueryCacheError):
    """Raised by data sources when a lookup implied by the query finds nothing."""

    def __init__(self, message: str = "Record not found", details: dict[str, Any] | None = None):
        super().__init__("record_not_found", message, details)
