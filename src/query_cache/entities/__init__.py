"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.

Entities should have:
- No JSON serialization logic beyond plain dict conversion
- No Pydantic validation
- No external dependencies
"""

from .cache_entry import CacheEntryEntity
from .query_spec import FilterClause, FilterOperator, QuerySpec, SortClause, SortDirection
from .resource_schema import FieldSpec, FieldType, ResourceSchema
from .result_page import Record, ResultPage

__all__ = [
    "CacheEntryEntity",
    "FieldSpec",
    "FieldType",
    "FilterClause",
    "FilterOperator",
    "QuerySpec",
    "Record",
    "ResourceSchema",
    "ResultPage",
    "SortClause",
    "SortDirection",
]
