"""Unit tests for the per-item JSON file sink."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tlsync.core.sink import ItemSink, JsonFileSink, serialize_item


@pytest.mark.unit
class TestJsonFileSink:
    """Test suite for JsonFileSink."""

    def test_satisfies_protocol(self, tmp_path: Path):
        assert isinstance(JsonFileSink(tmp_path / "out"), ItemSink)

    def test_writes_tab_indented_file_named_by_id(self, tmp_path: Path):
        sink = JsonFileSink(tmp_path / "content" / "user_timeline")
        item = {"id": 42, "text": "héllo"}

        assert sink.write(item, 42) is True

        path = tmp_path / "content" / "user_timeline_42.json"
        text = path.read_text(encoding="utf-8")
        assert text == '{\n\t"id": 42,\n\t"text": "héllo"\n}\n'
        assert json.loads(text) == item

    def test_rewrite_overwrites_existing_file(self, tmp_path: Path):
        sink = JsonFileSink(tmp_path / "tl")
        sink.write({"id": 1, "v": "old"}, 1)

        sink.write({"id": 1, "v": "new"}, 1)

        assert json.loads((tmp_path / "tl_1.json").read_text(encoding="utf-8"))["v"] == "new"

    def test_unserializable_item_reports_failure(self, tmp_path: Path):
        sink = JsonFileSink(tmp_path / "tl")

        assert sink.write({"id": 1, "bad": object()}, 1) is False
        assert not (tmp_path / "tl_1.json").exists()

    def test_io_failure_reports_failure(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        sink = JsonFileSink(blocker / "tl")

        assert sink.write({"id": 1}, 1) is False

    def test_pattern(self):
        assert JsonFileSink("content/user_timeline").pattern == "content/user_timeline_#.json"

    def test_serialize_item_keeps_key_order(self):
        assert serialize_item({"b": 1, "a": 2}).startswith('{\n\t"b"')

    def test_lone_surrogate_falls_back_to_escaped_json(self, tmp_path: Path):
        sink = JsonFileSink(tmp_path / "tl")
        item = {"id": 3, "text": "caf\u00e9 \ud83d"}

        assert sink.write(item, 3) is True

        text = (tmp_path / "tl_3.json").read_text(encoding="utf-8")
        assert text == '{\n\t"id": 3,\n\t"text": "caf\\u00e9 \\ud83d"\n}\n'
        assert json.loads(text) == item
