"""Tests for querylog_exporter.cursor — load/store, parsing, failures."""

from pathlib import Path
from unittest.mock import patch

import pytest

from querylog_exporter.cursor import CursorStore, parse_cursor
from querylog_exporter.exceptions import StorageError


class TestParseCursor:
    def test_plain_integer(self):
        assert parse_cursor("42") == 42

    def test_surrounding_whitespace_trimmed(self):
        assert parse_cursor("  1234\n") == 1234

    def test_zero(self):
        assert parse_cursor("0") == 0

    @pytest.mark.parametrize("text", ["", "   ", "-5", "+5", "12abc", "1.5", "1 2", "²"])
    def test_malformed_rejected(self, text):
        with pytest.raises(StorageError, match="Invalid lock file contents"):
            parse_cursor(text)


class TestLoad:
    def test_missing_file_returns_zero(self, tmp_path):
        store = CursorStore(tmp_path / "missing")
        assert store.load() == 0

    def test_reads_existing_value(self, tmp_path):
        path = tmp_path / "cursor"
        path.write_text("987\n", encoding="utf-8")
        assert CursorStore(path).load() == 987

    def test_malformed_file_is_an_error_not_zero(self, tmp_path):
        path = tmp_path / "cursor"
        path.write_text("garbage", encoding="utf-8")
        with pytest.raises(StorageError):
            CursorStore(path).load()

    def test_unreadable_file_raises_storage_error(self, tmp_path):
        # A directory at the cursor path exists but cannot be read as a file
        path = tmp_path / "cursor"
        path.mkdir()
        with pytest.raises(StorageError, match="Failed to read lock file"):
            CursorStore(path).load()

    def test_os_error_on_lookup_is_storage_error(self, tmp_path):
        path = tmp_path / ("x" * 300)
        with pytest.raises(StorageError, match="Failed to read lock file"):
            CursorStore(path).load()

    def test_permission_error_is_not_treated_as_missing(self, tmp_path):
        path = tmp_path / "cursor"
        path.write_text("12", encoding="utf-8")
        with patch("pathlib.Path.read_text", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(StorageError, match="Permission denied"):
                CursorStore(path).load()


class TestStore:
    def test_store_then_load(self, tmp_path):
        store = CursorStore(tmp_path / "cursor")
        store.store(15)
        assert store.load() == 15

    def test_store_fully_replaces_previous_value(self, tmp_path):
        path = tmp_path / "cursor"
        store = CursorStore(path)
        store.store(123456)
        store.store(7)
        assert path.read_text(encoding="utf-8") == "7"
        assert store.load() == 7

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "state" / "cursor"
        CursorStore(path).store(3)
        assert path.read_text(encoding="utf-8") == "3"

    def test_leaves_no_temp_file(self, tmp_path):
        CursorStore(tmp_path / "cursor").store(3)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["cursor"]

    @pytest.mark.parametrize("value", [-1, True, "5", 1.0])
    def test_invalid_values_rejected(self, tmp_path, value):
        path = tmp_path / "cursor"
        with pytest.raises(StorageError, match="Failed to write lock file"):
            CursorStore(path).store(value)
        assert not path.exists()

    def test_write_failure_raises_and_keeps_old_value(self, tmp_path):
        path = tmp_path / "cursor"
        store = CursorStore(path)
        store.store(10)
        with patch("pathlib.Path.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="disk full"):
                store.store(20)
        assert store.load() == 10
        assert [p.name for p in tmp_path.iterdir()] == ["cursor"]

    def test_cleanup_failure_keeps_original_error(self, tmp_path):
        store = CursorStore(tmp_path / "cursor")
        with patch("pathlib.Path.replace", side_effect=OSError("disk full")), \
                patch("pathlib.Path.unlink", side_effect=OSError("busy")):
            with pytest.raises(StorageError, match="disk full"):
                store.store(20)

    def test_unique_temp_names_per_write(self, tmp_path):
        store = CursorStore(tmp_path / "cursor")
        seen = []
        original_replace = Path.replace

        def record_replace(self, target):
            seen.append(self.name)
            return original_replace(self, target)

        with patch("pathlib.Path.replace", record_replace):
            store.store(1)
            store.store(2)
        assert len(set(seen)) == 2
        assert all(name != "cursor.tmp" for name in seen)
