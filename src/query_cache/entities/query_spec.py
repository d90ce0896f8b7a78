"""Normalized query domain entity."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FilterOperator(str, Enum):
    """Closed set of filter operators accepted in a request."""

    EQ = "eq"
    LIKE = "like"
    CONTAINS = "contains"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"

    @property
    def is_substring(self) -> bool:
        return self in (FilterOperator.LIKE, FilterOperator.CONTAINS)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterClause:
    """A single `{field, operator, value}` triple.

    The value has already been coerced to the field's declared type. For the
    `in` operator it is a tuple of coerced values.
    """

    field: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class SortClause:
    field: str
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True)
class QuerySpec:
    """Canonical, immutable representation of one request's retrieval intent.

    Filters and sort keep the order in which they arrived, since that order
    affects results. Projection and expansion are sets.

    Attributes:
        filters: AND-combined filter clauses, in request order
        sort: Sort clauses, in request order
        fields: Projected field names (empty means all fields)
        expand: Relation names to include with each record
        page: 1-based page number
        page_size: Number of records per page, already clamped
    """

    filters: tuple[FilterClause, ...] = ()
    sort: tuple[SortClause, ...] = ()
    fields: frozenset[str] = field(default_factory=frozenset)
    expand: frozenset[str] = field(default_factory=frozenset)
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        """Number of records preceding this page."""
        return (self.page - 1) * self.page_size
