"""Tests for smarttask.storage.line_store — LineStore (durable text lines)."""

import os
from unittest.mock import patch

import pytest

from smarttask.storage.line_store import LineStore, StorageError


class TestReadWrite:
    def test_read_missing_file_returns_empty(self, line_store, tmp_path):
        assert line_store.read_lines(tmp_path / "nope.txt") == []

    def test_write_creates_parent_dirs(self, line_store, tmp_path):
        target = tmp_path / "a" / "b" / "records.txt"
        line_store.write_lines(target, ["one", "two"])
        assert target.exists()
        assert line_store.read_lines(target) == ["one", "two"]

    def test_write_replaces_contents(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["old1", "old2", "old3"])
        line_store.write_lines(target, ["new"])
        assert line_store.read_lines(target) == ["new"]

    def test_write_empty_list(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["x"])
        line_store.write_lines(target, [])
        assert line_store.read_lines(target) == []

    def test_no_temp_files_left_behind(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["x"])
        assert [p.name for p in tmp_path.iterdir()] == ["records.txt"]

    def test_read_handles_crlf(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        target.write_bytes(b"a|b\r\nc|d\r\n")
        assert line_store.read_lines(target) == ["a|b", "c|d"]

    def test_read_keeps_unicode_line_separator_in_text(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["a\u2028b"])
        assert line_store.read_lines(target) == ["a\u2028b"]

    def test_write_failure_raises_storage_error(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        with patch("smarttask.storage.line_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                line_store.write_lines(target, ["x"])
        assert not target.exists()

    def test_directory_creation_failure_raises(self, line_store, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a dir")
        with pytest.raises(StorageError):
            line_store.write_lines(blocker / "records.txt", ["x"])


class TestAuxiliary:
    def test_append_line(self, line_store, tmp_path):
        target = tmp_path / "sub" / "log.txt"
        line_store.append_line(target, "first")
        line_store.append_line(target, "second")
        assert line_store.read_lines(target) == ["first", "second"]

    def test_exists_and_delete(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        assert line_store.exists(target) is False
        line_store.write_lines(target, ["x"])
        assert line_store.exists(target) is True
        assert line_store.delete(target) is True
        assert line_store.exists(target) is False
        assert line_store.delete(target) is False

    def test_size_and_last_modified(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        assert line_store.size(target) == -1
        assert line_store.last_modified(target) == -1
        line_store.write_lines(target, ["abc"])
        assert line_store.size(target) == 4  # "abc\n"
        assert line_store.last_modified(target) > 0

    def test_create_backup(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        assert line_store.create_backup(target) is None
        line_store.write_lines(target, ["keep me"])
        backup = line_store.create_backup(target)
        assert backup == tmp_path / "records.txt.backup"
        assert line_store.read_lines(backup) == ["keep me"]

    def test_create_timestamped_backup(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["x"])
        backup = line_store.create_timestamped_backup(target)
        assert backup is not None
        assert backup.name.startswith("records.txt.backup.")

    def test_cleanup_backups_keeps_newest(self, line_store, tmp_path):
        target = tmp_path / "records.txt"
        line_store.write_lines(target, ["x"])
        backups = []
        for i in range(4):
            backup = tmp_path / f"records.txt.backup.{i}"
            backup.write_text("x", encoding="utf-8")
            os.utime(backup, (1_000_000 + i, 1_000_000 + i))
            backups.append(backup)
        other = tmp_path / "other.txt.backup.0"
        other.write_text("y", encoding="utf-8")

        removed = line_store.cleanup_backups(target, keep=2)

        assert sorted(removed) == backups[:2]
        assert [b.exists() for b in backups] == [False, False, True, True]
        assert target.exists() and other.exists()
        assert line_store.cleanup_backups(target, keep=2) == []

    def test_cleanup_backups_missing_dir(self, line_store, tmp_path):
        assert line_store.cleanup_backups(tmp_path / "nope" / "records.txt") == []


def test_custom_encoding(tmp_path):
    store = LineStore(encoding="latin-1")
    target = tmp_path / "records.txt"
    store.write_lines(target, ["café"])
    assert target.read_bytes() == "café\n".encode("latin-1")
    assert store.read_lines(target) == ["café"]
