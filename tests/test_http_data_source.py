"""
Tests for the HTTP data source, using httpx.MockTransport.
"""

from datetime import date

import httpx
import pytest

from query_cache.entities import FilterClause, FilterOperator, SortClause, SortDirection
from query_cache.errors import DataSourceUnavailableError, RecordNotFoundError
from query_cache.repositories import HttpDataSource

QUERY = {
    "filters": (
        FilterClause("name", FilterOperator.CONTAINS, "al"),
        FilterClause("id", FilterOperator.IN, (1, 2)),
        FilterClause("active", FilterOperator.EQ, True),
        FilterClause("joined", FilterOperator.GT, date(2020, 1, 1)),
    ),
    "projection": frozenset({"name", "id"}),
    "expansions": frozenset({"team", "posts"}),
    "sort": (SortClause("name", SortDirection.ASC), SortClause("age", SortDirection.DESC)),
    "offset": 10,
    "limit": 6,
}


def _source(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpDataSource(base_url="http://catalog.test/api/", collection="/users", client=client)


def test_build_params_encodes_plan_in_order():
    """Test filters keep their order and sets are sorted."""
    params = HttpDataSource.build_params(**QUERY)

    assert params == [
        ("filter[name]", "contains:al"),
        ("filter[id]", "in:1,2"),
        ("filter[active]", "eq:true"),
        ("filter[joined]", "gt:2020-01-01"),
        ("sort", "name:asc,age:desc"),
        ("fields", "id,name"),
        ("with", "posts,team"),
        ("offset", "10"),
        ("limit", "6"),
    ]


@pytest.mark.asyncio
async def test_query_returns_items_and_total():
    """Test one GET against the collection URL."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"items": [{"id": 1, "name": "Alice"}], "total": 7})

    result = await _source(handler).query(**QUERY)

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/users"
    assert seen[0].url.params.get_list("filter[name]") == ["contains:al"]
    assert result.items == [{"id": 1, "name": "Alice"}]
    assert result.total_count == 7


@pytest.mark.asyncio
async def test_total_is_optional():
    """Test a body without total leaves total_count unset."""
    source = _source(lambda request: httpx.Response(200, json={"items": []}))

    result = await source.query(**QUERY)

    assert result.total_count is None


@pytest.mark.asyncio
async def test_404_is_record_not_found():
    """Test a 404 from the remote API."""
    source = _source(lambda request: httpx.Response(404))

    with pytest.raises(RecordNotFoundError):
        await source.query(**QUERY)


@pytest.mark.asyncio
async def test_server_error_is_unavailable():
    """Test a 5xx from the remote API."""
    source = _source(lambda request: httpx.Response(503))

    with pytest.raises(DataSourceUnavailableError) as exc_info:
        await source.query(**QUERY)

    assert exc_info.value.details["status_code"] == 503


@pytest.mark.asyncio
async def test_timeout_is_unavailable():
    """Test a transport timeout."""

    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(DataSourceUnavailableError):
        await _source(handler).query(**QUERY)


@pytest.mark.asyncio
async def test_connection_error_is_unavailable():
    """Test a refused connection."""

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DataSourceUnavailableError):
        await _source(handler).query(**QUERY)


@pytest.mark.asyncio
async def test_malformed_body_is_unavailable():
    """Test bodies that are not JSON or lack items."""
    for response in (httpx.Response(200, text="<html>"), httpx.Response(200, json={"rows": []})):
        source = _source(lambda request, r=response: r)

        with pytest.raises(DataSourceUnavailableError):
            await source.query(**QUERY)


@pytest.mark.asyncio
async def test_is_available():
    """Test availability is a HEAD that does not return 5xx."""
    up = _source(lambda request: httpx.Response(405))
    down = _source(lambda request: httpx.Response(502))

    assert await up.is_available() is True
    assert await down.is_available() is False


@pytest.mark.asyncio
async def test_close_releases_client():
    """Test close shuts the client and a new one is built on demand."""
    source = _source(lambda request: httpx.Response(200, json={"items": []}))
    first = source.client

    await source.close()

    assert first.is_closed
    assert source.client is not first
    await source.close()
