"""Shared pytest fixtures for tlsync tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import structlog

from tlsync.core.api_client import RateLimitStatus, TimelinePage
from tlsync.core.logger import UnifiedLogger

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Run every test from an empty working directory without TLSYNC variables."""

    for key in list(os.environ):
        if key.upper().startswith("TLSYNC"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    UnifiedLogger.reset()
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def credentials_file(tmp_path: Path) -> Path:
    """Well-formed four-line credentials file."""

    path = tmp_path / "CREDENTIALS"
    path.write_text("ckey\ncsecret\natoken\nasecret\n", encoding="utf-8")
    return path


def make_items(*ids: int) -> list[dict[str, Any]]:
    return [{"id": item_id, "id_str": str(item_id), "text": f"post {item_id}"} for item_id in ids]


class FakeFetcher:
    """Replays a scripted sequence of pages or exceptions and records every call."""

    def __init__(self, script: Iterable[TimelinePage | Exception]) -> None:
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []

    def fetch_page(self, params: Mapping[str, Any]) -> TimelinePage:
        self.calls.append(dict(params))
        if not self.script:
            return TimelinePage(items=[])
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSink:
    """In-memory sink; ids listed in ``fail_ids`` report failure."""

    def __init__(self, fail_ids: Iterable[int] = ()) -> None:
        self.fail_ids = set(fail_ids)
        self.written: list[int] = []
        self.attempted: list[int] = []

    def write(self, item: Mapping[str, Any], item_id: int) -> bool:
        self.attempted.append(item_id)
        if item_id in self.fail_ids:
            return False
        self.written.append(item_id)
        return True


class MemoryCursorStore:
    """Cursor store that keeps the value in memory."""

    def __init__(self, initial: int | None = None, *, fail_save: bool = False) -> None:
        self.value = initial
        self.fail_save = fail_save
        self.saves: list[int] = []

    def load(self) -> int | None:
        return self.value

    def save(self, item_id: int) -> bool:
        self.saves.append(item_id)
        if self.fail_save:
            return False
        self.value = item_id
        return True


class RecordingSleeper:
    """Sleeper stub that records requested durations; can simulate interruption."""

    def __init__(self, *, interrupt: bool = False) -> None:
        self.interrupt = interrupt
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> bool:
        self.calls.append(seconds)
        return self.interrupt


@pytest.fixture
def make_page() -> Any:
    """Build a successful page from item ids (newest first)."""

    def _make(*ids: int, remaining: int | None = 899) -> TimelinePage:
        return TimelinePage(
            items=make_items(*ids),
            rate_limit=RateLimitStatus(limit=900, remaining=remaining),
        )

    return _make


@pytest.fixture
def fake_fetcher_factory() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def sink_factory() -> type[RecordingSink]:
    return RecordingSink


@pytest.fixture
def cursor_factory() -> type[MemoryCursorStore]:
    return MemoryCursorStore


@pytest.fixture
def sleeper_factory() -> type[RecordingSleeper]:
    return RecordingSleeper
