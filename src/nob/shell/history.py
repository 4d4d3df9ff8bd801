"""Command History - Session history and the user's shell history file."""

import os
import re
from pathlib import Path
from typing import Iterator, Optional

from nob.config.defaults import DEFAULT_HISTORY_LINES
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)

# zsh extended history: ": <epoch>:<duration>;<command>"
_ZSH_EXTENDED_RE = re.compile(r"^:\s*\d+:\d+;(.+)$")
# fish history: "- cmd: <command>"
_FISH_CMD_RE = re.compile(r"^- cmd:\s*(.+)$")


class HistoryLog:
    """Submitted lines of the current session, oldest first.

    Consecutive duplicates are collapsed. Nothing is written to disk.

    Example:
        history = HistoryLog()
        history.add("ls -la")
        history.add("ls -la")  # ignored
        history.latest  # "ls -la"
    """

    def __init__(self) -> None:
        self._entries: list[str] = []

    def add(self, entry: str) -> bool:
        """Append an entry.

        Args:
            entry: Submitted text

        Returns:
            True if the entry was stored
        """
        if not entry or (self._entries and self._entries[-1] == entry):
            return False
        self._entries.append(entry)
        return True

    @property
    def latest(self) -> Optional[str]:
        return self._entries[-1] if self._entries else None

    def __getitem__(self, index: int) -> str:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


def history_file_for_shell(shell: Optional[str] = None, home: Optional[Path] = None) -> Optional[Path]:
    """Pick the history file for the user's shell.

    Args:
        shell: Shell path (defaults to $SHELL)
        home: Home directory (defaults to the user's home)

    Returns:
        Path to the history file, or None for unknown shells
    """
    shell = shell if shell is not None else os.environ.get("SHELL", "/bin/bash")
    home = home or Path.home()

    if "zsh" in shell:
        return home / ".zsh_history"
    if "bash" in shell:
        return home / ".bash_history"
    if "fish" in shell:
        return home / ".local" / "share" / "fish" / "fish_history"
    return None


def _parse_history_line(line: str) -> str:
    match = _ZSH_EXTENDED_RE.match(line) or _FISH_CMD_RE.match(line)
    if match:
        return match.group(1).strip()
    return line.strip()


def load_shell_history(
    path: Optional[Path] = None,
    max_lines: int = DEFAULT_HISTORY_LINES,
) -> list[str]:
    """Read recent commands from the user's shell history file.

    Only the last ``max_lines`` lines are read. zsh timestamps are stripped;
    comments and entries of two characters or fewer are dropped; the first
    occurrence of a duplicate wins. Any failure yields an empty list.

    Args:
        path: History file (detected from $SHELL if omitted)
        max_lines: Number of trailing lines to read

    Returns:
        Commands in file order
    """
    path = path or history_file_for_shell()
    if path is None or not path.exists():
        return []

    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()[-max_lines:]
    except OSError as e:
        logger.debug("Shell history unavailable", path=str(path), error=str(e))
        return []

    commands: list[str] = []
    seen: set[str] = set()
    for line in lines:
        if line.startswith("  when:"):
            continue
        cmd = _parse_history_line(line)
        if not cmd or cmd.startswith("#") or len(cmd) <= 2 or cmd in seen:
            continue
        seen.add(cmd)
        commands.append(cmd)

    logger.debug("Loaded shell history", path=str(path), count=len(commands))
    return commands
