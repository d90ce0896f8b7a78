"""HTTP-backed implementation of DataSource.

Forwards a query plan to a remote JSON collection API in one request:

    GET {base_url}/{collection}?filter[name]=contains:al&sort=name:asc
        &fields=id,name&with=posts&offset=10&limit=11

and expects a body of the form:

    {"items": [...], "total": 42}    # "total" is optional

Transport failures, timeouts and 5xx responses raise
DataSourceUnavailableError; 404 raises RecordNotFoundError.
"""

from datetime import date, datetime
from typing import Any, Sequence

import httpx

from query_cache.config import settings
from query_cache.entities import FilterClause, SortClause
from query_cache.errors import DataSourceUnavailableError, RecordNotFoundError
from query_cache.protocols import SourceResult


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, tuple):
        return ",".join(_format_value(v) for v in value)
    return str(value)


class HttpDataSource:
    """Remote collection served over HTTP.

    This class satisfies the DataSource protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        source = HttpDataSource.create(
            base_url="http://catalog.internal/api",
            collection="products",
        )
        result = await source.query(filters=(), projection=frozenset(), ...)
        ```
    """

    def __init__(
        self,
        base_url: str,
        collection: str,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP data source.

        Args:
            base_url: Root URL of the remote API
            collection: Collection path under the root URL
            timeout: Request timeout in seconds. Defaults to settings.data_source_timeout.
            client: Preconfigured client (tests inject a MockTransport here)
        """
        self._base_url = base_url.rstrip("/")
        self._collection = collection.strip("/")
        self._timeout = timeout or settings.data_source_timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        base_url: str,
        collection: str,
        timeout: float | None = None,
    ) -> "HttpDataSource":
        """Factory method to create HttpDataSource with defaults.

        Args:
            base_url: Root URL of the remote API
            collection: Collection path under the root URL
            timeout: Request timeout. If None, uses settings.

        Returns:
            Configured HttpDataSource
        """
        return cls(base_url=base_url, collection=collection, timeout=timeout)

    @property
    def url(self) -> str:
        return f"{self._base_url}/{self._collection}"

    @staticmethod
    def build_params(
        filters: Sequence[FilterClause],
        projection: frozenset[str],
        expansions: frozenset[str],
        sort: Sequence[SortClause],
        offset: int,
        limit: int,
    ) -> list[tuple[str, str]]:
        """Encode a plan as query parameters, preserving filter and sort order."""
        params = [
            (f"filter[{clause.field}]", f"{clause.operator.value}:{_format_value(clause.value)}")
            for clause in filters
        ]
        if sort:
            params.append(("sort", ",".join(f"{c.field}:{c.direction.value}" for c in sort)))
        if projection:
            params.append(("fields", ",".join(sorted(projection))))
        if expansions:
            params.append(("with", ",".join(sorted(expansions))))
        params.append(("offset", str(offset)))
        params.append(("limit", str(limit)))
        return params

    async def query(
        self,
        filters: Sequence[FilterClause],
        projection: frozenset[str],
        expansions: frozenset[str],
        sort: Sequence[SortClause],
        offset: int,
        limit: int,
    ) -> SourceResult:
        params = self.build_params(filters, projection, expansions, sort, offset, limit)

        try:
            response = await self.client.get(self.url, params=params)
        except httpx.TimeoutException as e:
            raise DataSourceUnavailableError(
                f"Timed out querying {self.url}",
                {"url": self.url, "timeout": self._timeout},
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceUnavailableError(f"Cannot reach {self.url}: {e}", {"url": self.url}) from e

        if response.status_code == 404:
            raise RecordNotFoundError(f"{self.url} returned 404", {"url": self.url})
        if response.status_code >= 400:
            raise DataSourceUnavailableError(
                f"{self.url} returned {response.status_code}",
                {"url": self.url, "status_code": response.status_code},
            )

        try:
            body = response.json()
            items = list(body["items"])
        except (ValueError, KeyError, TypeError) as e:
            raise DataSourceUnavailableError(f"Malformed response from {self.url}", {"url": self.url}) from e

        total = body.get("total")
        return SourceResult(items=items, total_count=int(total) if total is not None else None)

    async def is_available(self) -> bool:
        """Check if the remote API answers at all.

        Returns:
            True if a HEAD request gets a non-5xx response, False otherwise
        """
        try:
            response = await self.client.head(self.url)
            return response.status_code < 500
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
