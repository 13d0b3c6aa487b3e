"""Persistence of the resume cursor between runs.

The cursor file holds a single line: the decimal id of the newest item
written by the previous run, terminated by a newline. Both operations report
problems through logging and return values; neither raises.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from tlsync.config.models import MAX_CURSOR_ID
from tlsync.core.io import atomic_write_text
from tlsync.core.logging import LogEvents, UnifiedLogger

__all__ = ["CursorStore", "FileCursorStore", "parse_cursor"]


@runtime_checkable
class CursorStore(Protocol):
    """Load and save the last-seen item id."""

    def load(self) -> int | None:
        """Return the persisted id, or ``None`` when absent or unusable."""
        ...

    def save(self, item_id: int) -> bool:
        """Persist ``item_id``; return ``False`` on failure."""
        ...


def parse_cursor(text: str) -> int | None:
    """Parse the first line of ``text`` as an unsigned 64-bit decimal id."""

    first_line = text.split("\n", 1)[0].strip()
    if not first_line.isdigit() or not first_line.isascii():
        return None
    value = int(first_line)
    if value > MAX_CURSOR_ID:
        return None
    return value


class FileCursorStore:
    """Cursor store backed by one plain-text file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._logger = UnifiedLogger.get(__name__).bind(
            component="cursor_store",
            cursor_file=str(self.path),
        )

    def load(self) -> int | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._logger.info(LogEvents.CURSOR_LOAD_MISSING)
            return None
        except (OSError, UnicodeDecodeError) as exc:
            self._logger.warning(LogEvents.CURSOR_LOAD_FAILED, error=str(exc))
            return None

        value = parse_cursor(text)
        if value is None:
            self._logger.warning(
                LogEvents.CURSOR_LOAD_INVALID,
                content=text[:64],
            )
        return value

    def save(self, item_id: int) -> bool:
        if item_id < 0 or item_id > MAX_CURSOR_ID:
            self._logger.error(LogEvents.CURSOR_SAVE_FAILED, item_id=item_id, error="out of range")
            return False
        try:
            atomic_write_text(self.path, f"{item_id}\n")
        except OSError as exc:
            self._logger.error(LogEvents.CURSOR_SAVE_FAILED, item_id=item_id, error=str(exc))
            return False
        self._logger.info(LogEvents.CURSOR_SAVE_COMPLETED, item_id=item_id)
        return True
