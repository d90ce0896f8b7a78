from dataclasses import dataclass


@dataclass
class QueryMetrics:
    """Track cache and execution counters for the query service."""

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    cache_errors: int = 0
    executions: int = 0
    execution_errors: int = 0
    coalesced: int = 0
    total_lookup_time_ms: float = 0.0
    total_execution_time_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_lookup_time_ms(self) -> float:
        """Calculate average cache lookup time."""
        if self.total_queries == 0:
            return 0.0
        return self.total_lookup_time_ms / self.total_queries

    @property
    def avg_execution_time_ms(self) -> float:
        """Calculate average data source execution time."""
        if self.executions == 0:
            return 0.0
        return self.total_execution_time_ms / self.executions

    def record_hit(self, lookup_time_ms: float) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        self.cache_hits += 1
        self.total_lookup_time_ms += lookup_time_ms

    def record_miss(self, lookup_time_ms: float) -> None:
        """Record a cache miss."""
        self.total_queries += 1
        self.cache_misses += 1
        self.total_lookup_time_ms += lookup_time_ms

    def record_cache_error(self) -> None:
        """Record a cache read or write that failed and was bypassed."""
        self.cache_errors += 1

    def record_execution(self, duration_ms: float, failed: bool = False) -> None:
        """Record a data source execution."""
        self.executions += 1
        self.total_execution_time_ms += duration_ms
        if failed:
            self.execution_errors += 1

    def record_coalesced(self) -> None:
        """Record a miss that joined an in-flight execution."""
        self.coalesced += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_errors": self.cache_errors,
            "hit_rate": self.hit_rate,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
            "executions": self.executions,
            "execution_errors": self.execution_errors,
            "avg_execution_time_ms": self.avg_execution_time_ms,
            "coalesced": self.coalesced,
        }
