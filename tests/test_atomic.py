"""Tests for atomic writes and JSON helpers."""

import os
import stat
import sys
from unittest.mock import patch

import pytest

from claude_switch.atomic import (
    TEMP_PREFIX,
    dump_json,
    read_json,
    read_json_lenient,
    write_atomic,
    write_json,
)


def leftovers(directory):
    return [p.name for p in directory.iterdir() if p.name.startswith(TEMP_PREFIX)]


class TestWriteAtomic:
    def test_writes_text(self, tmp_path):
        target = tmp_path / "settings.json"
        write_atomic(target, "hello\n")
        assert target.read_text() == "hello\n"

    def test_writes_bytes_unchanged(self, tmp_path):
        target = tmp_path / "blob"
        write_atomic(target, b"\x00\xffraw")
        assert target.read_bytes() == b"\x00\xffraw"

    def test_overwrites_existing(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_text("old")
        write_atomic(target, "new")
        assert target.read_text() == "new"

    def test_same_content_twice_is_identical(self, tmp_path):
        target = tmp_path / "f.txt"
        write_atomic(target, "same")
        first = target.read_bytes()
        write_atomic(target, "same")
        assert target.read_bytes() == first

    def test_creates_parent_dirs(self, tmp_path):
        target = tmp_path / "a" / "b" / "c.txt"
        write_atomic(target, "x")
        assert target.read_text() == "x"

    def test_no_temp_files_left(self, tmp_path):
        for i in range(5):
            write_atomic(tmp_path / "f.txt", f"v{i}")
        assert leftovers(tmp_path) == []

    def test_failed_rename_keeps_original_and_cleans_up(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_text("original")
        with patch("claude_switch.atomic.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                write_atomic(target, "replacement")
        assert target.read_text() == "original"
        assert leftovers(tmp_path) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX modes")
    def test_keeps_existing_mode(self, tmp_path):
        target = tmp_path / "settings.json"
        target.write_text("{}\n")
        target.chmod(0o644)
        write_atomic(target, "{\"a\": 1}\n")
        assert stat.S_IMODE(target.stat().st_mode) == 0o644

        target.chmod(0o640)
        write_atomic(target, "{}\n")
        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX modes")
    def test_new_file_uses_umask_default(self, tmp_path):
        old = os.umask(0o022)
        try:
            write_atomic(tmp_path / "new.json", "{}")
        finally:
            os.umask(old)
        assert stat.S_IMODE((tmp_path / "new.json").stat().st_mode) == 0o644


class TestJson:
    def test_missing_file_returns_default(self, tmp_path):
        assert read_json(tmp_path / "nope.json") is None
        assert read_json(tmp_path / "nope.json", default={}) == {}

    def test_corrupt_file_raises(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ValueError):
            read_json(bad)

    def test_lenient_read_swallows_corruption(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        assert read_json_lenient(bad) is None
        assert read_json_lenient(tmp_path / "missing.json") is None

    def test_dump_is_indented_with_trailing_newline(self):
        text = dump_json({"a": 1})
        assert text == '{\n  "a": 1\n}\n'

    def test_non_ascii_kept_verbatim(self, tmp_path):
        target = tmp_path / "p.json"
        write_json(target, {"statusLine": "🔵 Dev"})
        assert "🔵 Dev" in target.read_text(encoding="utf-8")
        assert read_json(target) == {"statusLine": "🔵 Dev"}
