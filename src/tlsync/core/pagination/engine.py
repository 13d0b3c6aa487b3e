"""Backward ``since_id``/``max_id`` pagination over the user timeline.

The engine is an explicit state machine::

    INIT -> FETCHING -> BACKOFF -> FETCHING
                     -> PROCESSING -> FETCHING | DONE
                     -> DONE | ABORTED | CANCELLED

``PageQuery`` and ``RunState`` are owned by a single :meth:`TimelinePaginator.run`
call; nothing is shared between runs. Whatever the terminal state, the id of
the last item the sink accepted is handed to the cursor store, provided at
least one item was written.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from tlsync.config.models import MAX_CURSOR_ID
from tlsync.core.api_client import RateLimitStatus, TimelinePage
from tlsync.core.backoff import RateLimitBackoff
from tlsync.core.cursor_store import CursorStore
from tlsync.core.exceptions import (
    ConfigError,
    RateLimitError,
    TimelinePayloadError,
    TimelineRequestError,
)
from tlsync.core.logging import LogEvents, UnifiedLogger
from tlsync.core.runtime.shutdown import ShutdownSignal
from tlsync.core.sink import ItemSink

__all__ = [
    "PaginationState",
    "PageQuery",
    "RunState",
    "RunResult",
    "PageFetcher",
    "PaginationCallbacks",
    "TimelinePaginator",
    "resolve_item_id",
    "resolve_since_id",
]


class PaginationState(str, Enum):
    """States of the fetch loop."""

    INIT = "init"
    FETCHING = "fetching"
    BACKOFF = "backoff"
    PROCESSING = "processing"
    DONE = "done"
    ABORTED = "aborted"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {PaginationState.DONE, PaginationState.ABORTED, PaginationState.CANCELLED}
)


@dataclass(frozen=True, slots=True)
class PageQuery:
    """Request parameters for one page.

    ``since_id`` is fixed for the whole run; ``max_id`` is only set once the
    first page has been processed.
    """

    screen_name: str
    count: int
    since_id: int | None = None
    max_id: int | None = None
    extra_params: Mapping[str, str] = field(default_factory=dict)

    def to_params(self) -> dict[str, str]:
        params = {"count": str(self.count), "screen_name": self.screen_name}
        if self.since_id is not None:
            params["since_id"] = str(self.since_id)
        if self.max_id is not None:
            params["max_id"] = str(self.max_id)
        for key, value in self.extra_params.items():
            params.setdefault(key, value)
        return params

    def next_page(self, max_id: int) -> "PageQuery":
        return replace(self, max_id=max_id)


@dataclass(slots=True)
class RunState:
    """Mutable counters for a single run. ``written`` never exceeds ``cap``."""

    cap: int
    written: int = 0
    last_seen_id: int | None = None
    pages: int = 0
    fetched: int = 0
    skipped: int = 0

    @property
    def cap_reached(self) -> bool:
        return self.written >= self.cap


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of a run, used for the summary line and the exit code."""

    state: PaginationState
    written: int
    skipped: int
    pages: int
    last_seen_id: int | None
    cursor_saved: bool
    error: TimelineRequestError | None = None

    @property
    def ok(self) -> bool:
        return self.state is not PaginationState.ABORTED


class PageFetcher(Protocol):
    """Anything that turns query parameters into a :class:`TimelinePage`."""

    def fetch_page(self, params: Mapping[str, Any]) -> TimelinePage:
        ...


@dataclass(slots=True)
class PaginationCallbacks:
    """Optional progress hooks, invoked synchronously by the engine."""

    on_page: Callable[[int, RateLimitStatus, RunState], None] | None = None
    on_item_written: Callable[[int, RunState], None] | None = None
    on_rate_limited: Callable[[datetime, float], None] | None = None
    on_end_of_timeline: Callable[[RunState], None] | None = None
    on_cap_reached: Callable[[RunState], None] | None = None


def resolve_item_id(item: Mapping[str, Any]) -> int:
    """Return the numeric id of ``item``, falling back to ``id_str``."""

    raw = item.get("id")
    if isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw <= MAX_CURSOR_ID:
        return raw
    raw_str = item.get("id_str")
    if isinstance(raw_str, str) and raw_str.isdigit() and raw_str.isascii():
        value = int(raw_str)
        if value <= MAX_CURSOR_ID:
            return value
    raise TimelinePayloadError(f"Item has no usable id: id={raw!r} id_str={raw_str!r}")


def resolve_since_id(override: str | None, cursor: int | None) -> int | None:
    """Pick the lower bound: a non-empty override wins over the saved cursor."""

    if override is not None and override.strip():
        value = override.strip()
        if not value.isdigit() or not value.isascii() or int(value) > MAX_CURSOR_ID:
            raise ConfigError(f"since must be an unsigned decimal id, got {override!r}", source="since")
        return int(value)
    return cursor


class TimelinePaginator:
    """Drives fetch, backoff, sink and cursor store for one timeline."""

    def __init__(
        self,
        fetcher: PageFetcher,
        sink: ItemSink,
        cursor_store: CursorStore,
        backoff: RateLimitBackoff,
        *,
        shutdown: ShutdownSignal | None = None,
        callbacks: PaginationCallbacks | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.sink = sink
        self.cursor_store = cursor_store
        self.backoff = backoff
        self.shutdown = shutdown
        self.callbacks = callbacks or PaginationCallbacks()
        self.state = PaginationState.INIT
        self._logger = UnifiedLogger.get(__name__).bind(component="pagination")

    def run(
        self,
        *,
        screen_name: str,
        count: int,
        cap: int,
        since: str | None = None,
        extra_params: Mapping[str, str] | None = None,
    ) -> RunResult:
        """Fetch pages until the timeline ends, ``cap`` items are written, or the run stops.

        Raises
        ------
        ConfigError
            When ``cap`` or ``count`` is not positive or ``since`` is not a
            decimal id. Nothing is fetched or written in that case.
        """

        if cap <= 0:
            raise ConfigError(f"total must be a positive integer, got {cap}", source="total")
        if count <= 0:
            raise ConfigError(f"count must be a positive integer, got {count}", source="count")

        self.state = PaginationState.INIT
        since_id = resolve_since_id(since, self.cursor_store.load())
        query = PageQuery(
            screen_name=screen_name,
            count=count,
            since_id=since_id,
            extra_params=dict(extra_params or {}),
        )
        run_state = RunState(cap=cap)
        error: TimelineRequestError | None = None
        self._logger.info(
            LogEvents.TIMELINE_RUN_START,
            since_id=since_id,
            count=count,
            cap=cap,
        )

        self.state = PaginationState.FETCHING
        try:
            while not self.state.terminal:
                if self.state is PaginationState.FETCHING:
                    if self.shutdown is not None and self.shutdown.is_set():
                        self.state = PaginationState.CANCELLED
                        continue
                    try:
                        page = self.fetcher.fetch_page(query.to_params())
                    except RateLimitError as exc:
                        self.state = self._backoff(exc)
                        continue
                    except TimelineRequestError as exc:
                        error = exc
                        self._logger.error(LogEvents.TIMELINE_RUN_ABORTED, **exc.to_dict())
                        self.state = PaginationState.ABORTED
                        continue

                    run_state.pages += 1
                    if not page.items:
                        self._logger.info(LogEvents.TIMELINE_PAGE_EMPTY, pages=run_state.pages)
                        if self.callbacks.on_end_of_timeline:
                            self.callbacks.on_end_of_timeline(run_state)
                        self.state = PaginationState.DONE
                        continue

                    try:
                        ids = [resolve_item_id(item) for item in page.items]
                    except TimelinePayloadError as exc:
                        error = exc
                        self._logger.error(LogEvents.TIMELINE_RUN_ABORTED, **exc.to_dict())
                        self.state = PaginationState.ABORTED
                        continue

                    self.state = PaginationState.PROCESSING
                    self.state = self._process_page(page, ids, run_state)
                    if self.state is PaginationState.FETCHING:
                        oldest = min(ids)
                        if oldest == 0:
                            # nothing can sort below id 0
                            self.state = PaginationState.DONE
                            continue
                        query = query.next_page(oldest - 1)
        finally:
            # progress is persisted even when the loop raises
            cursor_saved = self._persist_cursor(run_state)

        result = RunResult(
            state=self.state,
            written=run_state.written,
            skipped=run_state.skipped,
            pages=run_state.pages,
            last_seen_id=run_state.last_seen_id,
            cursor_saved=cursor_saved,
            error=error,
        )
        event = {
            PaginationState.DONE: LogEvents.TIMELINE_RUN_FINISH,
            PaginationState.ABORTED: LogEvents.TIMELINE_RUN_ABORTED,
            PaginationState.CANCELLED: LogEvents.TIMELINE_RUN_CANCELLED,
        }[self.state]
        self._logger.info(
            event,
            state=self.state.value,
            written=result.written,
            skipped=result.skipped,
            pages=result.pages,
            last_seen_id=result.last_seen_id,
            cursor_saved=cursor_saved,
        )
        return result

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _backoff(self, exc: RateLimitError) -> PaginationState:
        self.state = PaginationState.BACKOFF
        wait_seconds = self.backoff.plan(exc.reset_at)
        if self.callbacks.on_rate_limited:
            self.callbacks.on_rate_limited(exc.reset_at, wait_seconds)
        if not self.backoff.sleep(wait_seconds, reset_at=exc.reset_at):
            return PaginationState.CANCELLED
        return PaginationState.FETCHING

    def _process_page(
        self,
        page: TimelinePage,
        ids: Sequence[int],
        run_state: RunState,
    ) -> PaginationState:
        run_state.fetched += len(page.items)
        for item, item_id in zip(page.items, ids):
            if not self.sink.write(item, item_id):
                run_state.skipped += 1
                self._logger.warning(LogEvents.TIMELINE_ITEM_SKIPPED, item_id=item_id)
                continue
            run_state.written += 1
            run_state.last_seen_id = item_id
            self._logger.debug(
                LogEvents.TIMELINE_ITEM_WRITTEN,
                item_id=item_id,
                written=run_state.written,
            )
            if self.callbacks.on_item_written:
                self.callbacks.on_item_written(item_id, run_state)
            if run_state.cap_reached:
                self._logger.info(LogEvents.TIMELINE_CAP_REACHED, cap=run_state.cap)
                if self.callbacks.on_cap_reached:
                    self.callbacks.on_cap_reached(run_state)
                return PaginationState.DONE

        self._logger.info(
            LogEvents.TIMELINE_PAGE_FETCHED,
            items=len(page.items),
            rate_limit_remaining=page.rate_limit.remaining,
            written=run_state.written,
            cap=run_state.cap,
        )
        if self.callbacks.on_page:
            self.callbacks.on_page(len(page.items), page.rate_limit, run_state)
        return PaginationState.FETCHING

    def _persist_cursor(self, run_state: RunState) -> bool:
        if run_state.last_seen_id is None:
            self._logger.info(LogEvents.CURSOR_SAVE_SKIPPED, reason="nothing written")
            return False
        return self.cursor_store.save(run_state.last_seen_id)
