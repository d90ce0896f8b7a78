"""Cache entry domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached result payload.

    Owned by the cache store. Entries are replaced wholesale on refresh,
    never mutated in place.

    Attributes:
        key: The cache key this entry is stored under
        payload: The serialized result page (see ResultPage.to_dict)
        created_at: Unix timestamp of when the entry was stored
        ttl: Time-to-live in seconds
    """

    key: str
    payload: dict[str, Any]
    created_at: float
    ttl: int

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
