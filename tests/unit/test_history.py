"""Tests for session and shell history."""

from pathlib import Path

import pytest

from nob.shell.history import HistoryLog, history_file_for_shell, load_shell_history


class TestHistoryLog:
    """Tests for HistoryLog."""

    def test_add(self) -> None:
        """Entries should be kept in order."""
        history = HistoryLog()
        assert history.add("ls") is True
        assert history.add("pwd") is True
        assert list(history) == ["ls", "pwd"]
        assert history.latest == "pwd"
        assert history[0] == "ls"

    def test_consecutive_duplicates_collapsed(self) -> None:
        """Repeating the last entry should not store it again."""
        history = HistoryLog()
        history.add("ls")
        assert history.add("ls") is False
        history.add("pwd")
        history.add("ls")
        assert list(history) == ["ls", "pwd", "ls"]

    def test_empty_entry_ignored(self) -> None:
        history = HistoryLog()
        assert history.add("") is False
        assert len(history) == 0
        assert history.latest is None


class TestHistoryFileForShell:
    """Tests for history file detection."""

    @pytest.mark.parametrize(
        "shell,relative",
        [
            ("/bin/zsh", ".zsh_history"),
            ("/bin/bash", ".bash_history"),
            ("/usr/bin/fish", ".local/share/fish/fish_history"),
        ],
    )
    def test_known_shells(self, shell: str, relative: str, tmp_path: Path) -> None:
        assert history_file_for_shell(shell, home=tmp_path) == tmp_path / relative

    def test_unknown_shell(self, tmp_path: Path) -> None:
        assert history_file_for_shell("/bin/tcsh", home=tmp_path) is None


class TestLoadShellHistory:
    """Tests for reading the shell history file."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file should give no history."""
        assert load_shell_history(tmp_path / "nope") == []

    def test_bash_history(self, tmp_path: Path) -> None:
        """Short entries, comments and duplicates should be dropped."""
        path = tmp_path / ".bash_history"
        path.write_text("ls\ngit status\n#1700000000\nmake test\ngit status\ncd\n")

        assert load_shell_history(path) == ["git status", "make test"]

    def test_zsh_extended_history(self, tmp_path: Path) -> None:
        """zsh timestamps should be stripped."""
        path = tmp_path / ".zsh_history"
        path.write_text(": 1700000000:0;git push\n: 1700000001:3;npm install\n")

        assert load_shell_history(path) == ["git push", "npm install"]

    def test_fish_history(self, tmp_path: Path) -> None:
        """fish command entries should be read and metadata skipped."""
        path = tmp_path / "fish_history"
        path.write_text("- cmd: cargo build\n  when: 1700000000\n- cmd: cargo test\n  when: 1700000001\n")

        assert load_shell_history(path) == ["cargo build", "cargo test"]

    def test_max_lines(self, tmp_path: Path) -> None:
        """Only the trailing lines should be read."""
        path = tmp_path / ".bash_history"
        path.write_text("\n".join(f"echo {i}" for i in range(10)) + "\n")

        assert load_shell_history(path, max_lines=3) == ["echo 7", "echo 8", "echo 9"]
