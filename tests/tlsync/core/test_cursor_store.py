"""Unit tests for the file-backed cursor store."""

from __future__ import annotations

from pathlib import Path

import pytest

from tlsync.core.cursor_store import CursorStore, FileCursorStore, parse_cursor


@pytest.mark.unit
class TestParseCursor:
    """Test suite for parse_cursor."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("123\n", 123),
            ("  456  \n", 456),
            ("789", 789),
            ("18446744073709551615\n", 2**64 - 1),
            ("10\nignored\n", 10),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_cursor(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["", "\n", "abc\n", "-5\n", "1.5\n", "18446744073709551616\n", "\n123\n"],
    )
    def test_invalid(self, text):
        assert parse_cursor(text) is None


@pytest.mark.unit
class TestFileCursorStore:
    """Test suite for FileCursorStore."""

    def test_satisfies_protocol(self, tmp_path: Path):
        assert isinstance(FileCursorStore(tmp_path / "last_id"), CursorStore)

    def test_missing_file_loads_none(self, tmp_path: Path):
        assert FileCursorStore(tmp_path / "missing").load() is None

    def test_garbage_loads_none(self, tmp_path: Path):
        path = tmp_path / "last_id"
        path.write_text("not-a-number\n", encoding="utf-8")

        assert FileCursorStore(path).load() is None

    def test_directory_in_place_of_file_loads_none(self, tmp_path: Path):
        path = tmp_path / "last_id"
        path.mkdir()

        assert FileCursorStore(path).load() is None

    def test_save_creates_parents_and_round_trips(self, tmp_path: Path):
        path = tmp_path / "content" / "last_id"
        store = FileCursorStore(path)

        assert store.save(1234567890123) is True

        assert path.read_text(encoding="utf-8") == "1234567890123\n"
        assert store.load() == 1234567890123
        assert [p.name for p in path.parent.iterdir()] == ["last_id"]

    def test_save_overwrites(self, tmp_path: Path):
        path = tmp_path / "last_id"
        path.write_text("1\n", encoding="utf-8")

        FileCursorStore(path).save(2)

        assert path.read_text(encoding="utf-8") == "2\n"

    def test_save_failure_returns_false(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")

        assert FileCursorStore(blocker / "last_id").save(5) is False

    def test_out_of_range_id_not_saved(self, tmp_path: Path):
        path = tmp_path / "last_id"

        assert FileCursorStore(path).save(2**64) is False
        assert not path.exists()
