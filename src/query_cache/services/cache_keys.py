"""Deterministic cache keys for normalized queries.

A key is a pure function of the resource identity and the QuerySpec: no
clock, no randomness, no request headers. Filters and sort keep their order;
projection and expansion sets are sorted so equivalent sets share a slot.
"""

import hashlib
import json
from datetime import date, datetime
from typing import Any

from query_cache.config import settings
from query_cache.entities import FilterClause, QuerySpec


def _encode_value(value: Any) -> Any:
    # Tag temporal values so a date never collides with an equal-looking string.
    if isinstance(value, datetime):
        return {"datetime": value.isoformat()}
    if isinstance(value, date):
        return {"date": value.isoformat()}
    if isinstance(value, tuple):
        return [_encode_value(v) for v in value]
    return value


def _encode_filter(clause: FilterClause) -> list[Any]:
    return [clause.field, clause.operator.value, _encode_value(clause.value)]


def canonical_form(resource: str, spec: QuerySpec) -> str:
    """Serialize a resource identity and spec into canonical JSON.

    Args:
        resource: Resource identity (schema name)
        spec: The normalized query

    Returns:
        A compact JSON string, identical for equivalent inputs
    """
    document = {
        "resource": resource,
        "filters": [_encode_filter(clause) for clause in spec.filters],
        "sort": [[clause.field, clause.direction.value] for clause in spec.sort],
        "fields": sorted(spec.fields),
        "expand": sorted(spec.expand),
        "page": spec.page,
        "page_size": spec.page_size,
    }
    return json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def resource_prefix(resource: str, namespace: str | None = None) -> str:
    """Return the key prefix shared by every cached query of a resource."""
    return f"{namespace or settings.cache_namespace}:{resource}:"


def derive_key(resource: str, spec: QuerySpec, namespace: str | None = None) -> str:
    """Derive the cache key for a query.

    Args:
        resource: Resource identity (schema name)
        spec: The normalized query
        namespace: Key namespace. Defaults to settings.cache_namespace.

    Returns:
        Key of the form "<namespace>:<resource>:<sha256 hex digest>"
    """
    digest = hashlib.sha256(canonical_form(resource, spec).encode("utf-8")).hexdigest()
    return f"{resource_prefix(resource, namespace)}{digest}"
