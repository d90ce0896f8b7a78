#!/usr/bin/env python3
"""
Demo script for query cache.

This script runs filter/sort/paginate queries against the sample catalog
and shows cache hits, invalidation and single-flight coalescing.
"""

import asyncio
import time

from query_cache import MemoryCacheStore, ParseError, QueryService
from query_cache.logging import configure_logging
from query_cache.repositories import MemoryDataSource
from query_cache.sample_data import USER_SCHEMA, USERS, build_registry
from query_cache.services import ResourceRegistry


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_basic_queries(service: QueryService) -> None:
    """Demonstrate list queries and cache hits."""
    print_section("Filter, Sort, Paginate")

    params = {"filter[name]": 'contains:"al"', "sort": "name:asc", "pageSize": "2", "fields": "id,name"}

    for page in (1, 2, 3):
        start = time.perf_counter()
        result = await service.query("users", {**params, "page": str(page)})
        duration = (time.perf_counter() - start) * 1000
        names = [record["name"] for record in result.page.items]
        print(f"\n  Page {page}: {names}")
        print(f"  hasNext: {result.page.has_next}, total: {result.page.total_count}")
        print(f"  {'HIT' if result.cache_hit else 'MISS'} in {duration:.2f}ms")

    print("\n🔁 Same first page again:")
    result = await service.query("users", {**params, "page": "1"})
    print(f"  {'✓ CACHE HIT' if result.cache_hit else '✗ Cache miss'}  key={result.cache_key}")


async def demo_expansion(service: QueryService) -> None:
    """Demonstrate projection with relation expansion."""
    print_section("Projection and Expansion")

    result = await service.fetch_one("users", "1", {"fields": "id,name", "with": "posts,team"})
    record = result.page.items[0]
    print(f"\n  {record['name']} ({record['team']['name']})")
    for post in record["posts"]:
        print(f"    - {post['title']}")


async def demo_errors(service: QueryService) -> None:
    """Demonstrate rejected requests."""
    print_section("Rejected Requests")

    for params in ({"filter[ssn]": "123"}, {"filter[age]": "gt:old"}, {"with": "friends"}):
        try:
            await service.query("users", params)
        except ParseError as e:
            print(f"\n  {params}")
            print(f"  ✗ {e.code}: {e.message}")


async def demo_invalidation(service: QueryService) -> None:
    """Demonstrate resource-wide invalidation."""
    print_section("Invalidation")

    removed = await service.invalidate("users")
    print(f"\n  Dropped {removed} cached 'users' pages")
    result = await service.query("users", {"sort": "-score", "pageSize": "3"})
    print(f"  Next query: {'HIT' if result.cache_hit else 'MISS'}")


async def demo_single_flight() -> None:
    """Demonstrate coalescing of concurrent misses."""
    print_section("Single-Flight")

    source = MemoryDataSource(records=USERS, schema=USER_SCHEMA, latency=0.2)
    registry = ResourceRegistry()
    registry.register(USER_SCHEMA, source)
    service = QueryService.create(registry=registry, cache_store=MemoryCacheStore(), single_flight=True)

    start = time.perf_counter()
    await asyncio.gather(*(service.query("users", {"filter[active]": "true"}) for _ in range(10)))
    duration = (time.perf_counter() - start) * 1000

    print(f"\n  10 concurrent requests -> {source.query_count} data source call(s) in {duration:.0f}ms")
    print(f"  Coalesced: {service.metrics.coalesced}")


async def run() -> None:
    service = QueryService.create(registry=build_registry(), cache_store=MemoryCacheStore())

    await demo_basic_queries(service)
    await demo_expansion(service)
    await demo_errors(service)
    await demo_invalidation(service)
    await demo_single_flight()

    stats = await service.get_stats()
    print_section("Statistics")
    for name, value in stats["performance"].items():
        print(f"  {name}: {value}")


def main() -> None:
    """Run all demos."""
    configure_logging("query_cache", "warning", json_logs=False)

    print("\n🚀 Query Cache Demo")
    print("=" * 70)
    print("This demo queries the sample users/posts catalog through the result cache")

    try:
        asyncio.run(run())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")


if __name__ == "__main__":
    main()
