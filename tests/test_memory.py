"""Tests for the project memory file."""

from unittest.mock import patch

import pytest

from claude_lessons.memory import memory_file_path, read_memory_file, write_memory_file


class TestMemoryFile:
    """Tests for reading and writing CLAUDE.md."""

    def test_path(self, tmp_path):
        assert memory_file_path(tmp_path) == tmp_path.resolve() / "CLAUDE.md"

    def test_read_missing(self, tmp_path):
        assert read_memory_file(tmp_path / "CLAUDE.md") == ""

    def test_read_verbatim(self, tmp_path):
        path = tmp_path / "CLAUDE.md"
        path.write_text("# Notes\n\n- keep diffs small\n", encoding="utf-8")
        assert read_memory_file(path) == "# Notes\n\n- keep diffs small\n"

    def test_write_replaces_content(self, tmp_path):
        path = tmp_path / "CLAUDE.md"
        path.write_text("old", encoding="utf-8")
        write_memory_file(path, "new content")
        assert read_memory_file(path) == "new content"
        assert not list(tmp_path.glob("CLAUDE.md.tmp.*"))

    def test_write_creates_parent(self, tmp_path):
        path = tmp_path / "nested" / "CLAUDE.md"
        write_memory_file(path, "hello")
        assert path.read_text(encoding="utf-8") == "hello"

    def test_failed_replace_keeps_original(self, tmp_path):
        path = tmp_path / "CLAUDE.md"
        path.write_text("original", encoding="utf-8")
        with patch("claude_lessons.memory.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_memory_file(path, "new")
        assert path.read_text(encoding="utf-8") == "original"
        assert not list(tmp_path.glob("CLAUDE.md.tmp.*"))
