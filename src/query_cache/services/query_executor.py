"""Query planning and execution.

The executor turns a QuerySpec into a QueryPlan and runs it against a data
source in exactly one round trip. Stages are always applied in the same
order: filters, projection, expansions, sort, pagination. Sorting happens
before pagination so page boundaries stay stable against a static source.
"""

from dataclasses import dataclass

from query_cache.config import settings
from query_cache.entities import FilterClause, QuerySpec, ResultPage, SortClause
from query_cache.errors import (
    DataSourceUnavailableError,
    ExecutionError,
    ExecutionErrorKind,
    RecordNotFoundError,
)
from query_cache.logging import get_logger
from query_cache.protocols import DataSource

from .pagination import assemble

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueryPlan:
    """Data source operations for one QuerySpec, in application order."""

    filters: tuple[FilterClause, ...]
    projection: frozenset[str]
    expansions: frozenset[str]
    sort: tuple[SortClause, ...]
    offset: int
    limit: int


class QueryExecutor:
    """Plans and executes queries against a data source.

    Example:
        ```python
        executor = QueryExecutor.create()
        page = await executor.execute(source, spec)
        ```
    """

    def __init__(self, lookahead: bool | None = None) -> None:
        """Initialize the executor.

        Args:
            lookahead: Request one extra row to decide has_next exactly.
                Defaults to settings.
        """
        self._lookahead = settings.lookahead if lookahead is None else lookahead

    @classmethod
    def create(cls, lookahead: bool | None = None) -> "QueryExecutor":
        """Factory method to create QueryExecutor with settings defaults."""
        return cls(lookahead=lookahead)

    @property
    def lookahead(self) -> bool:
        return self._lookahead

    def plan(self, spec: QuerySpec) -> QueryPlan:
        """Build the plan for a spec.

        Args:
            spec: The normalized query

        Returns:
            QueryPlan with offset/limit derived from the page
        """
        return QueryPlan(
            filters=spec.filters,
            projection=spec.fields,
            expansions=spec.expand,
            sort=spec.sort,
            offset=spec.offset,
            limit=spec.page_size + 1 if self._lookahead else spec.page_size,
        )

    async def execute(self, data_source: DataSource, spec: QuerySpec) -> ResultPage:
        """Execute a spec against a data source.

        No retries happen here. Cancellation of the caller propagates into
        the outstanding source call unchanged.

        Args:
            data_source: The collection to query
            spec: The normalized query

        Returns:
            The assembled ResultPage

        Raises:
            ExecutionError: SOURCE_FAILURE if the source is unreachable or
                fails, NOT_FOUND if a lookup implied by the query finds nothing
        """
        plan = self.plan(spec)

        try:
            result = await data_source.query(
                filters=plan.filters,
                projection=plan.projection,
                expansions=plan.expansions,
                sort=plan.sort,
                offset=plan.offset,
                limit=plan.limit,
            )
        except RecordNotFoundError as e:
            raise ExecutionError(ExecutionErrorKind.NOT_FOUND, e.message, e.details) from e
        except DataSourceUnavailableError as e:
            logger.warning("Data source unavailable", error=e.message)
            raise ExecutionError(ExecutionErrorKind.SOURCE_FAILURE, e.message, e.details) from e
        except Exception as e:
            logger.error("Data source query failed", error=str(e), error_type=type(e).__name__)
            raise ExecutionError(
                ExecutionErrorKind.SOURCE_FAILURE,
                f"Data source query failed: {e}",
            ) from e

        return assemble(
            result.items,
            spec,
            total_count=result.total_count,
            lookahead=self._lookahead,
        )
