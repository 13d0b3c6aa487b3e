"""Rate-limit backoff controller.

The wait is ``max(reset_at - now + pad, min_floor)``: at least the floor even
when the reset time is already in the past (clock skew), and otherwise a
little past the reset the server reported.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone

from tlsync.config.models import BackoffConfig
from tlsync.core.logging import LogEvents, UnifiedLogger
from tlsync.core.runtime.shutdown import ShutdownSignal

__all__ = ["DEFAULT_MIN_WAIT", "DEFAULT_PAD", "compute_wait", "RateLimitBackoff"]

DEFAULT_MIN_WAIT = 10.0
DEFAULT_PAD = 1.0

Sleeper = Callable[[float], bool]
"""Blocks for the given seconds; returns ``True`` when the sleep was interrupted."""


def compute_wait(
    reset_at: datetime,
    now: datetime,
    *,
    min_floor: float = DEFAULT_MIN_WAIT,
    pad: float = DEFAULT_PAD,
) -> float:
    """Return the number of seconds to sleep before retrying."""

    return max((reset_at - now).total_seconds() + pad, min_floor)


def _blocking_sleep(seconds: float) -> bool:
    time.sleep(seconds)
    return False


class RateLimitBackoff:
    """Computes rate-limit waits and sleeps through them.

    The sleep is interruptible when a :class:`ShutdownSignal` is supplied;
    ``clock`` and ``sleeper`` are injectable so tests never block.
    """

    def __init__(
        self,
        config: BackoffConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        sleeper: Sleeper | None = None,
        shutdown: ShutdownSignal | None = None,
    ) -> None:
        cfg = config or BackoffConfig()
        self.min_floor = float(cfg.min_wait_sec)
        self.pad = float(cfg.pad_sec)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        if sleeper is None:
            sleeper = shutdown.wait if shutdown is not None else _blocking_sleep
        self._sleeper = sleeper
        self._logger = UnifiedLogger.get(__name__).bind(component="backoff")

    def plan(self, reset_at: datetime) -> float:
        """Return the wait in seconds for a rate limit resetting at ``reset_at``."""
        return compute_wait(reset_at, self._clock(), min_floor=self.min_floor, pad=self.pad)

    def sleep(self, seconds: float, *, reset_at: datetime | None = None) -> bool:
        """Sleep ``seconds``; return ``True`` if the sleep completed, ``False`` if interrupted."""
        self._logger.info(
            LogEvents.BACKOFF_WAIT_START,
            wait_seconds=round(seconds, 3),
            reset_at=reset_at.isoformat() if reset_at else None,
        )
        interrupted = self._sleeper(seconds)
        if interrupted:
            self._logger.warning(LogEvents.BACKOFF_WAIT_INTERRUPTED, wait_seconds=round(seconds, 3))
            return False
        return True

    def wait(self, reset_at: datetime) -> bool:
        """Plan and sleep in one step."""
        return self.sleep(self.plan(reset_at), reset_at=reset_at)
