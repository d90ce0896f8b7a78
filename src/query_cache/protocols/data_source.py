"""Data source protocol.

Defines the interface for the queryable collection behind a query endpoint.
The query layer never knows how records are stored.

Implementations can include:
- In-memory record lists (default, tests and demos)
- Remote JSON APIs over HTTP
- SQL or document databases behind a driver
"""

from typing import NamedTuple, Protocol, Sequence, runtime_checkable

from query_cache.entities import FilterClause, Record, SortClause


class SourceResult(NamedTuple):
    """Records returned by one data source round trip.

    total_count is None when the source cannot count cheaply.
    """

    items: list[Record]
    total_count: int | None = None


@runtime_checkable
class DataSource(Protocol):
    """Protocol for queryable record collections.

    Implementations raise DataSourceUnavailableError when the collection
    cannot be reached, and RecordNotFoundError when a lookup the query implies
    finds nothing. A query with no matching records is an empty result, not
    an error.

    Example:
        ```python
        from query_cache.protocols import DataSource

        source: DataSource = MemoryDataSource(records)
        source: DataSource = HttpDataSource.create(base_url="http://catalog/api")
        ```
    """

    async def query(
        self,
        filters: Sequence[FilterClause],
        projection: frozenset[str],
        expansions: frozenset[str],
        sort: Sequence[SortClause],
        offset: int,
        limit: int,
    ) -> SourceResult:
        """Run one query in a single round trip.

        Args:
            filters: AND-combined filter clauses
            projection: Fields to return (empty means all)
            expansions: Relations to include with each record
            sort: Sort clauses, most significant first
            offset: Records to skip after sorting
            limit: Maximum records to return

        Returns:
            SourceResult with the selected records
        """
        ...
