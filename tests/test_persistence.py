"""
Tests for persistence — NDJSON history writer and in-memory sink.
"""

import json
from pathlib import Path

from maziq.core.models.action import Action
from maziq.core.persistence.history import HistoryRecord, HistoryWriter, MemoryHistory


def _record(sid: str = "ripgrep", action: Action = Action.INSTALL) -> HistoryRecord:
    return HistoryRecord(software_id=sid, action=action, version="14.1.0", source="cargo")


class TestHistoryWriter:
    def test_append_and_read(self, tmp_state_dir: Path):
        writer = HistoryWriter(tmp_state_dir / "history.ndjson")
        writer.append(_record("a"))
        writer.append(_record("b", Action.UNINSTALL))
        records = writer.read_all()
        assert [r.software_id for r in records] == ["a", "b"]
        assert records[1].action is Action.UNINSTALL
        assert records[0].timestamp

    def test_one_json_object_per_line(self, tmp_state_dir: Path):
        path = tmp_state_dir / "history.ndjson"
        HistoryWriter(path).append(_record())
        lines = path.read_text().splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["software_id"] == "ripgrep"
        assert data["action"] == "install"

    def test_creates_parent_directory(self, tmp_path: Path):
        path = tmp_path / "nested" / "dir" / "history.ndjson"
        HistoryWriter(path).append(_record())
        assert path.is_file()

    def test_missing_file_reads_empty(self, tmp_path: Path):
        assert HistoryWriter(tmp_path / "nope.ndjson").read_all() == []

    def test_corrupt_lines_skipped(self, tmp_state_dir: Path):
        path = tmp_state_dir / "history.ndjson"
        writer = HistoryWriter(path)
        writer.append(_record("a"))
        with path.open("a") as f:
            f.write("{not json\n")
            f.write('{"software_id": "x"}\n')
        writer.append(_record("b"))
        assert [r.software_id for r in writer.read_all()] == ["a", "b"]

    def test_read_recent(self, tmp_state_dir: Path):
        writer = HistoryWriter(tmp_state_dir / "history.ndjson")
        for sid in "abcde":
            writer.append(_record(sid))
        assert [r.software_id for r in writer.read_recent(2)] == ["d", "e"]

    def test_write_error_does_not_raise(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        HistoryWriter(blocker / "history.ndjson").append(_record())


class TestMemoryHistory:
    def test_records(self):
        sink = MemoryHistory()
        sink.append(_record())
        assert [r.software_id for r in sink.records] == ["ripgrep"]
