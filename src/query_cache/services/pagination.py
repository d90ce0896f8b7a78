"""Pagination assembly."""

from typing import Sequence

from query_cache.entities import QuerySpec, Record, ResultPage


def assemble(
    raw_items: Sequence[Record],
    spec: QuerySpec,
    total_count: int | None = None,
    lookahead: bool = True,
) -> ResultPage:
    """Build a ResultPage from the records a source returned for spec.

    has_next is decided, in order of preference, by:

    1. total_count, when the source reported one: exact.
    2. A look-ahead row (the plan asked for page_size + 1): exact.
    3. Otherwise, a full page is assumed to have a successor. This heuristic
       reports a false positive when the last page is exactly full.

    Args:
        raw_items: Records returned by the source, in result order
        spec: The query the records were fetched for
        total_count: Total matching records, if the source reported it
        lookahead: Whether the plan requested one extra record

    Returns:
        The immutable page, never longer than spec.page_size
    """
    if total_count is not None:
        has_next = total_count > spec.page * spec.page_size
    elif lookahead:
        has_next = len(raw_items) > spec.page_size
    else:
        has_next = len(raw_items) == spec.page_size

    return ResultPage(
        items=tuple(dict(item) for item in raw_items[: spec.page_size]),
        page_number=spec.page,
        page_size=spec.page_size,
        has_next=has_next,
        total_count=total_count,
    )
