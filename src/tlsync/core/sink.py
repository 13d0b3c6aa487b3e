"""Per-item persistence.

Each item becomes one file named ``<prefix>_<id>.json`` holding the item
pretty-printed with tab indentation and a trailing newline. Rewriting an item
that already exists overwrites it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from tlsync.core.io import atomic_write_text
from tlsync.core.logging import LogEvents, UnifiedLogger

__all__ = ["ItemSink", "JsonFileSink", "serialize_item"]


@runtime_checkable
class ItemSink(Protocol):
    """Destination for fetched items."""

    def write(self, item: Mapping[str, Any], item_id: int) -> bool:
        """Persist ``item``; return ``False`` on failure instead of raising."""
        ...


def serialize_item(item: Mapping[str, Any]) -> str:
    """Render ``item`` the way it is stored on disk.

    Text is kept unescaped where possible. An item carrying a lone UTF-16
    surrogate (a truncated emoji, say) cannot be encoded as UTF-8, so that
    item is rendered with ``\\uXXXX`` escapes instead and still parses back
    to the same value.
    """

    text = json.dumps(item, indent="\t", ensure_ascii=False)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        text = json.dumps(item, indent="\t", ensure_ascii=True)
    return text + "\n"


class JsonFileSink:
    """Writes every item to its own pretty-printed JSON file."""

    def __init__(self, prefix: str | Path) -> None:
        self.prefix = str(prefix)
        self._logger = UnifiedLogger.get(__name__).bind(component="sink")

    def path_for(self, item_id: int) -> Path:
        return Path(f"{self.prefix}_{item_id}.json")

    @property
    def pattern(self) -> str:
        """Human readable pattern of the files this sink produces."""
        return f"{self.prefix}_#.json"

    def write(self, item: Mapping[str, Any], item_id: int) -> bool:
        path = self.path_for(item_id)
        try:
            text = serialize_item(item)
        except (TypeError, ValueError) as exc:
            self._logger.error(
                LogEvents.SINK_WRITE_FAILED,
                item_id=item_id,
                path=str(path),
                error=f"serialization failed: {exc}",
            )
            return False
        try:
            atomic_write_text(path, text)
        except (OSError, UnicodeError) as exc:
            self._logger.error(
                LogEvents.SINK_WRITE_FAILED,
                item_id=item_id,
                path=str(path),
                error=str(exc),
            )
            return False
        return True
