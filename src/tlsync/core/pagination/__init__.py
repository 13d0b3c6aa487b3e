"""Timeline pagination engine."""

from __future__ import annotations

from .engine import (
    PageFetcher,
    PageQuery,
    PaginationCallbacks,
    PaginationState,
    RunResult,
    RunState,
    TimelinePaginator,
    resolve_item_id,
    resolve_since_id,
)

__all__ = [
    "PageFetcher",
    "PageQuery",
    "PaginationCallbacks",
    "PaginationState",
    "RunResult",
    "RunState",
    "TimelinePaginator",
    "resolve_item_id",
    "resolve_since_id",
]
