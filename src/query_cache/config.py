import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from redis import asyncio as aioredis

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "memory")  # "memory" or "redis"
    cache_ttl: int = int(os.getenv("CACHE_TTL", "300"))  # 5 minutes default
    cache_namespace: str = os.getenv("CACHE_NAMESPACE", "query_cache")

    # Query planning
    default_page_size: int = int(os.getenv("QUERY_DEFAULT_PAGE_SIZE", "20"))
    max_page_size: int = int(os.getenv("QUERY_MAX_PAGE_SIZE", "100"))
    lookahead: bool = _env_bool("QUERY_LOOKAHEAD", "true")
    single_flight: bool = _env_bool("QUERY_SINGLE_FLIGHT", "false")

    # Data source
    data_source_timeout: float = float(os.getenv("DATA_SOURCE_TIMEOUT", "10.0"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "info")
    log_json: bool = _env_bool("LOG_JSON", "true")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")

    @property
    def uses_redis(self) -> bool:
        """Check if the result cache is backed by Redis.

        Returns:
            True if CACHE_BACKEND is redis, False otherwise
        """
        return self.cache_backend.lower() == "redis"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_backend.lower() not in ("memory", "redis"):
            raise ValueError(f"CACHE_BACKEND must be 'memory' or 'redis', got {self.cache_backend!r}")

        if self.cache_ttl <= 0:
            raise ValueError("CACHE_TTL must be a positive number of seconds")

        if self.max_page_size < 1:
            raise ValueError("QUERY_MAX_PAGE_SIZE must be at least 1")

        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"QUERY_DEFAULT_PAGE_SIZE must be between 1 and {self.max_page_size}, "
                f"got {self.default_page_size}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> aioredis.Redis:
    """Create an asyncio Redis client instance."""
    return aioredis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )
