"""
Shared fixtures for the query cache tests.
"""

import pytest

from query_cache.repositories import MemoryCacheStore, MemoryDataSource, Relation
from query_cache.sample_data import POSTS, TEAMS, USER_SCHEMA, USERS
from query_cache.services import QueryExecutor, QueryService, RequestParser, ResourceRegistry


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def schema():
    """The sample users schema."""
    return USER_SCHEMA


@pytest.fixture
def parser():
    """Create a parser with a page size ceiling of 100."""
    return RequestParser(default_page_size=20, max_page_size=100)


@pytest.fixture
def source(schema):
    """Create an in-memory users source with posts and team relations."""
    return MemoryDataSource(
        records=USERS,
        schema=schema,
        relations={
            "posts": Relation(records=POSTS, local_key="id", foreign_key="user_id"),
            "team": Relation(records=TEAMS, local_key="team_id", many=False, required=True),
        },
    )


@pytest.fixture
def registry(schema, source):
    """Create a registry serving the users resource."""
    registry = ResourceRegistry()
    registry.register(schema, source)
    return registry


@pytest.fixture
def store(clock):
    """Create an in-process cache store driven by the fake clock."""
    return MemoryCacheStore(namespace="test", clock=clock)


@pytest.fixture
def service(registry, store, parser):
    """Create a query service over the users resource."""
    return QueryService(
        registry=registry,
        cache_store=store,
        parser=parser,
        executor=QueryExecutor(lookahead=True),
        ttl=60,
        single_flight=False,
        namespace="test",
    )
