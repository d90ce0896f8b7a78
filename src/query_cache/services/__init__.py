"""Service layer for business logic.

This layer contains the query resolution pipeline and its orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from query_cache.services import QueryService, ResourceRegistry

    # Using factory method (recommended)
    service = QueryService.create(registry=registry, cache_store=store)

    # Or manual creation
    service = QueryService(registry=registry, cache_store=store, parser=parser, executor=executor)
    ```
"""

from .cache_keys import canonical_form, derive_key, resource_prefix
from .pagination import assemble
from .query_executor import QueryExecutor, QueryPlan
from .query_service import QueryResult, QueryService
from .request_parser import RequestParser
from .resource_registry import Endpoint, ResourceRegistry

__all__ = [
    "Endpoint",
    "QueryExecutor",
    "QueryPlan",
    "QueryResult",
    "QueryService",
    "RequestParser",
    "ResourceRegistry",
    "assemble",
    "canonical_form",
    "derive_key",
    "resource_prefix",
]
