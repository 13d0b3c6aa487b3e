"""Cooperative cancellation for the fetch run.

``ShutdownSignal`` turns SIGINT/SIGTERM into a flag that the pagination engine
polls before every request and that interrupts the rate-limit sleep. Handlers
are installed for the duration of a ``with`` block and the previous handlers
are restored on exit.
"""

from __future__ import annotations

import signal
import sys
import threading
from types import FrameType, TracebackType
from typing import Any

from tlsync.core.logging import LogEvents, UnifiedLogger

__all__ = ["ShutdownSignal"]


class ShutdownSignal:
    """Thread-safe shutdown flag with optional OS signal integration."""

    def __init__(self) -> None:
        self.logger = UnifiedLogger.get(__name__)
        self._event = threading.Event()
        self._previous: dict[int, Any] = {}

    @property
    def event(self) -> threading.Event:
        return self._event

    def is_set(self) -> bool:
        """Return ``True`` once a shutdown was requested."""
        return self._event.is_set()

    def request(self, reason: str = "manual") -> None:
        """Request shutdown; safe to call more than once."""
        if self._event.is_set():
            return
        self.logger.info(LogEvents.SHUTDOWN_SIGNAL_RECEIVED, reason=reason)
        self._event.set()

    def wait(self, timeout: float) -> bool:
        """Block for up to ``timeout`` seconds; return ``True`` if shutdown was requested."""
        return self._event.wait(timeout)

    def _handler(self, signum: int, frame: FrameType | None) -> None:
        self.request(reason=signal.Signals(signum).name)

    def _signals(self) -> list[int]:
        signals = [signal.SIGINT, signal.SIGTERM]
        if sys.platform == "win32":
            signals.append(signal.SIGBREAK)
        return signals

    def install(self) -> None:
        """Install handlers for SIGINT/SIGTERM, remembering the previous ones.

        Signal handlers can only be installed from the main thread; elsewhere
        this is a no-op and only :meth:`request` can trigger cancellation.
        """
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in self._signals():
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handler)

    def restore(self) -> None:
        """Restore the handlers that were active before :meth:`install`."""
        for signum, previous in self._previous.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()

    def __enter__(self) -> "ShutdownSignal":
        self.install()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.restore()
