"""Result page domain entity."""

from dataclasses import dataclass
from typing import Any

Record = dict[str, Any]


@dataclass(frozen=True)
class ResultPage:
    """One page of records plus page metadata.

    Attributes:
        items: Records on this page, in result order
        page_number: 1-based page number
        page_size: Requested page size
        total_count: Total matching records, only when the source reports it
        has_next: Whether records exist beyond this page
    """

    items: tuple[Record, ...]
    page_number: int
    page_size: int
    has_next: bool
    total_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain payload suitable for a cache store."""
        return {
            "items": [dict(item) for item in self.items],
            "page_number": self.page_number,
            "page_size": self.page_size,
            "has_next": self.has_next,
            "total_count": self.total_count,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ResultPage":
        """Rebuild a page from a cache payload."""
        return cls(
            items=tuple(dict(item) for item in payload["items"]),
            page_number=int(payload["page_number"]),
            page_size=int(payload["page_size"]),
            has_next=bool(payload["has_next"]),
            total_count=payload.get("total_count"),
        )
