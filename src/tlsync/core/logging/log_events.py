"""Registry of structured logging event identifiers."""

from __future__ import annotations

from enum import Enum, auto

__all__ = ["LogEvents"]


class LogEvents(str, Enum):
    """Strongly typed registry of UnifiedLogger events.

    Member names follow ``NAMESPACE_ACTION_OUTCOME`` and are rendered as
    dotted identifiers, e.g. ``TIMELINE_PAGE_FETCHED`` becomes
    ``timeline.page.fetched``.
    """

    @staticmethod
    def _generate_next_value_(name: str, start: int, count: int, _last_values: list[str]) -> str:
        """Produce a dotted event identifier based on enum member naming."""
        parts = name.lower().split("_")
        namespace = parts[0] if parts else "event"
        suffix = parts[-1] if len(parts) > 1 else "event"
        action_parts = parts[1:-1] if len(parts) > 2 else []
        if not action_parts:
            action_parts = ["event"]
        return ".".join((namespace, ".".join(action_parts), suffix))

    def __str__(self) -> str:
        return str(self.value)

    CLI_RUN_START = auto()
    CLI_RUN_FINISH = auto()
    CLI_RUN_ERROR = auto()
    CONFIG_LOAD_FAILED = auto()
    CONFIG_OVERRIDES_APPLIED = auto()
    CREDENTIALS_LOAD_FAILED = auto()
    HTTP_REQUEST_COMPLETED = auto()
    HTTP_REQUEST_EXCEPTION = auto()
    HTTP_REQUEST_FAILED = auto()
    HTTP_RATE_LIMIT_HIT = auto()
    HTTP_PAYLOAD_INVALID = auto()
    BACKOFF_WAIT_START = auto()
    BACKOFF_WAIT_INTERRUPTED = auto()
    TIMELINE_RUN_START = auto()
    TIMELINE_RUN_FINISH = auto()
    TIMELINE_RUN_ABORTED = auto()
    TIMELINE_RUN_CANCELLED = auto()
    TIMELINE_PAGE_FETCHED = auto()
    TIMELINE_PAGE_EMPTY = auto()
    TIMELINE_ITEM_WRITTEN = auto()
    TIMELINE_ITEM_SKIPPED = auto()
    TIMELINE_CAP_REACHED = auto()
    CURSOR_LOAD_MISSING = auto()
    CURSOR_LOAD_INVALID = auto()
    CURSOR_LOAD_FAILED = auto()
    CURSOR_SAVE_COMPLETED = auto()
    CURSOR_SAVE_FAILED = auto()
    CURSOR_SAVE_SKIPPED = auto()
    SINK_WRITE_FAILED = auto()
    SHUTDOWN_SIGNAL_RECEIVED = auto()
