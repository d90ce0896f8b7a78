"""In-memory implementation of DataSource.

Serves a list of record dictionaries, with relations resolved by joining
other in-memory collections. Used for tests, demos and small reference
tables that fit in process memory.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Sequence

from query_cache.entities import (
    FilterClause,
    FilterOperator,
    Record,
    ResourceSchema,
    SortClause,
)
from query_cache.errors import DataSourceUnavailableError, RecordNotFoundError
from query_cache.protocols import SourceResult


@dataclass(frozen=True)
class Relation:
    """Join description for one expandable relation.

    Attributes:
        records: The related collection
        local_key: Field on the parent record holding the join value
        foreign_key: Field on related records matched against local_key
        many: True for to-many (list), False for to-one (single record or None)
        required: For to-one relations, a missing target raises RecordNotFoundError
    """

    records: Sequence[Record]
    local_key: str
    foreign_key: str = "id"
    many: bool = True
    required: bool = False


def _compare(operator: FilterOperator, left: Any, right: Any) -> bool:
    try:
        if operator is FilterOperator.LT:
            return left < right
        if operator is FilterOperator.LTE:
            return left <= right
        if operator is FilterOperator.GT:
            return left > right
        return left >= right
    except TypeError:
        return False


class MemoryDataSource:
    """In-memory record collection.

    This class satisfies the DataSource protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        source = MemoryDataSource.create(
            records=users,
            schema=user_schema,
            relations={"posts": Relation(records=posts, local_key="id", foreign_key="user_id")},
        )
        ```
    """

    def __init__(
        self,
        records: Sequence[Record],
        schema: ResourceSchema | None = None,
        relations: dict[str, Relation] | None = None,
        report_total: bool = True,
        latency: float = 0.0,
    ) -> None:
        """Initialize the in-memory source.

        Args:
            records: The collection
            schema: Resource schema, consulted for per-field case sensitivity
            relations: Expandable relations keyed by name
            report_total: Whether results carry a total count
            latency: Seconds to wait per query, to simulate a remote source
        """
        self._records = [dict(record) for record in records]
        self._schema = schema
        self._relations = dict(relations or {})
        self._report_total = report_total
        self._latency = latency
        self.query_count = 0

    @classmethod
    def create(
        cls,
        records: Sequence[Record],
        schema: ResourceSchema | None = None,
        relations: dict[str, Relation] | None = None,
        report_total: bool = True,
    ) -> "MemoryDataSource":
        """Factory method to create MemoryDataSource."""
        return cls(records=records, schema=schema, relations=relations, report_total=report_total)

    async def query(
        self,
        filters: Sequence[FilterClause],
        projection: frozenset[str],
        expansions: frozenset[str],
        sort: Sequence[SortClause],
        offset: int,
        limit: int,
    ) -> SourceResult:
        self.query_count += 1
        if self._latency:
            await asyncio.sleep(self._latency)

        matched = [record for record in self._records if all(self._matches(record, c) for c in filters)]

        # Rows stay paired with their full record so sorting can use fields
        # the projection leaves out.
        rows = [(record, self._project(record, projection)) for record in matched]

        for name in sorted(expansions):
            self._expand(name, rows)

        for clause in reversed(sort):
            rows.sort(
                key=lambda row, f=clause.field: (row[0].get(f) is None, row[0].get(f)),
                reverse=clause.descending,
            )

        page = [view for _, view in rows[offset : offset + limit]]
        return SourceResult(items=page, total_count=len(matched) if self._report_total else None)

    def _case_sensitive(self, field: str) -> bool:
        if self._schema is None:
            return False
        spec = self._schema.field_spec(field)
        return spec is not None and spec.case_sensitive

    def _matches(self, record: Record, clause: FilterClause) -> bool:
        value = record.get(clause.field)
        operator = clause.operator

        if operator is FilterOperator.EQ:
            return value == clause.value
        if operator is FilterOperator.IN:
            return value in clause.value
        if value is None:
            return False
        if operator.is_substring:
            haystack, needle = str(value), str(clause.value)
            if not self._case_sensitive(clause.field):
                haystack, needle = haystack.casefold(), needle.casefold()
            return needle in haystack
        return _compare(operator, value, clause.value)

    @staticmethod
    def _project(record: Record, projection: frozenset[str]) -> Record:
        if not projection:
            return dict(record)
        return {name: record.get(name) for name in sorted(projection)}

    def _expand(self, name: str, rows: list[tuple[Record, Record]]) -> None:
        relation = self._relations.get(name)
        if relation is None:
            raise DataSourceUnavailableError(f"Relation '{name}' is not configured", {"relation": name})

        index: dict[Any, list[Record]] = {}
        for related in relation.records:
            index.setdefault(related.get(relation.foreign_key), []).append(dict(related))

        for record, view in rows:
            key = record.get(relation.local_key)
            matches = index.get(key, []) if key is not None else []
            if relation.many:
                view[name] = [dict(m) for m in matches]
                continue
            if not matches and relation.required:
                raise RecordNotFoundError(
                    f"Related '{name}' record {key!r} not found",
                    {"relation": name, "key": key},
                )
            view[name] = dict(matches[0]) if matches else None
