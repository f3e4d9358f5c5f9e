"""Tests for snapshot files (toggle_pane/snapshot.py)."""

import json
from pathlib import Path

from toggle_pane.snapshot import SnapshotWriter, tab_id_from_path


class TestPaths:
    def test_path_is_deterministic(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        assert writer.path_for(7) == tmp_path / "toggle_pane_tab_7.json"
        assert writer.path_for(7) == SnapshotWriter(tmp_path).path_for(7)

    def test_default_directory_follows_config(self, base_dir):
        assert SnapshotWriter().directory == base_dir / "tmp"

    def test_tab_id_from_path(self):
        assert tab_id_from_path(Path("/x/toggle_pane_tab_12.json")) == 12
        assert tab_id_from_path(Path("/x/toggle_pane_tab_12.json.tmp")) is None
        assert tab_id_from_path(Path("/x/other.json")) is None


class TestWrite:
    def test_creates_directory_and_file(self, tmp_path):
        writer = SnapshotWriter(tmp_path / "a" / "b")
        assert writer.write(7, 42)
        data = json.loads(writer.path_for(7).read_text())
        assert data["pane_id"] == 42
        assert data["tab_id"] == 7
        assert data["active"] is True
        assert data["timestamp"] > 0

    def test_overwrites(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        writer.write(7, 42)
        writer.write(7, 43)
        assert writer.read(7).pane_id == 43

    def test_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "tmp"
        blocker.write_text("")
        assert SnapshotWriter(blocker).write(1, 2) is False


class TestClear:
    def test_removes_file(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        writer.write(7, 42)
        assert writer.clear(7)
        assert not writer.path_for(7).exists()

    def test_absent_file_is_fine(self, tmp_path):
        assert SnapshotWriter(tmp_path / "missing").clear(7)

    def test_only_touches_own_tab(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        writer.write(1, 10)
        writer.write(2, 20)
        writer.clear(1)
        assert writer.read(2).pane_id == 20


class TestRead:
    def test_read_missing(self, tmp_path):
        assert SnapshotWriter(tmp_path).read(3) is None

    def test_read_corrupt(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        writer.path_for(3).write_text("{")
        assert writer.read(3) is None

    def test_read_all(self, tmp_path):
        writer = SnapshotWriter(tmp_path)
        writer.write(1, 10)
        writer.write(2, 20)
        (tmp_path / "unrelated.json").write_text("{}")
        snapshots = writer.read_all()
        assert sorted(snapshots) == [1, 2]
        assert snapshots[2].pane_id == 20

    def test_read_all_missing_directory(self, tmp_path):
        assert SnapshotWriter(tmp_path / "nope").read_all() == {}
