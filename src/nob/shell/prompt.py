"""Prompt Renderer - Prompt header, welcome screen and status lines."""

import getpass
import re
from pathlib import Path
from typing import Optional

from nob.shell.session import SessionContext
from nob.shell.terminal import Colors

# Inner width of the welcome box
BOX_WIDTH = 78

LOGO = (
    "     ╭─────╮     ",
    "    ╱       ╲    ",
    "   │    ◉    │   ",
    "    ╲       ╱    ",
    "     ╰─────╯     ",
)

SHORTCUTS = (
    ("nob on    ", " Enable AI mode"),
    ("nob off   ", " Manual shell + autosuggestion"),
    ("Tab       ", " Accept suggestion (manual only)"),
    ("↑/↓       ", " Navigate history"),
    ("exit      ", " Quit nob"),
)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Remove ANSI color codes from text."""
    return _ANSI_RE.sub("", text)


def abbreviate_path(path: str, home: Optional[Path] = None) -> str:
    """Replace the home directory prefix with ~."""
    home_str = str(home or Path.home())
    if path == home_str:
        return "~"
    if path.startswith(home_str + "/"):
        return "~" + path[len(home_str):]
    return path


class PromptRenderer:
    """Renders nob's fixed screen elements.

    Example prompt header:
        [AI On] ❯ ~/projects/app
    """

    def __init__(self, use_color: bool = True, version: str = "") -> None:
        """Initialize the renderer.

        Args:
            use_color: Whether to use ANSI colors
            version: Version shown in the welcome box
        """
        self.use_color = use_color
        self.version = version

    def _colorize(self, text: str, color: str) -> str:
        if self.use_color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def render_header(self, session: SessionContext) -> str:
        """Line printed above each input area."""
        mode_color = Colors.GREEN if session.ai_enabled else Colors.YELLOW
        return (
            self._colorize(f"[{session.mode_label}] ", Colors.BOLD + mode_color)
            + self._colorize("❯ ", Colors.BOLD + Colors.MAGENTA)
            + self._colorize(abbreviate_path(session.cwd), Colors.BLUE)
        )

    def _boxed(self, content: str, visible_len: int, left: Optional[int] = None) -> str:
        if left is None:
            left = (BOX_WIDTH - visible_len) // 2
        right = BOX_WIDTH - visible_len - left
        edge = self._colorize("│", Colors.GRAY)
        return f"{edge}{' ' * left}{content}{' ' * max(0, right)}{edge}"

    def render_welcome(self, session: SessionContext, user: Optional[str] = None) -> str:
        """Boxed welcome screen shown when the session starts."""
        if user is None:
            try:
                user = getpass.getuser()
            except (KeyError, OSError):
                user = "there"
        name = user[:1].upper() + user[1:]
        mode_text = "AI Mode" if session.ai_enabled else "Manual Mode"
        mode_color = Colors.GREEN if session.ai_enabled else Colors.YELLOW
        short_path = abbreviate_path(session.cwd)

        lines = [self._colorize("╭" + "─" * BOX_WIDTH + "╮", Colors.GRAY)]
        blank = self._boxed("", 0)

        welcome = f"Welcome back {name}!"
        lines += [blank, self._boxed(self._colorize(welcome, Colors.BOLD + Colors.WHITE), len(welcome)), blank]
        lines += [self._boxed(self._colorize(row, Colors.MAGENTA), len(row)) for row in LOGO]
        lines.append(blank)
        lines.append(self._boxed(self._colorize(mode_text, Colors.BOLD + mode_color), len(mode_text)))
        lines.append(self._boxed(self._colorize(short_path, Colors.BLUE), len(short_path)))
        lines.append(blank)
        lines.append(self._colorize("│" + "─" * BOX_WIDTH + "│", Colors.GRAY))
        lines.append(blank)

        lines.append(self._boxed(self._colorize("Shortcuts", Colors.BOLD + Colors.WHITE), len("Shortcuts"), left=2))
        for command, description in SHORTCUTS:
            content = self._colorize(command, Colors.CYAN) + self._colorize(description, Colors.GRAY)
            lines.append(self._boxed(content, len(command) + len(description), left=2))
        lines.append(blank)

        version_text = f"─── nob v{self.version} ───"
        lines.append(self._boxed(self._colorize(version_text, Colors.GRAY), len(version_text)))
        lines.append(self._colorize("╰" + "─" * BOX_WIDTH + "╯", Colors.GRAY))

        return "\n".join(lines)

    def render_key_status(self, has_personal_key: bool) -> str:
        """One-line note about which backend is in use."""
        if has_personal_key:
            return self._colorize("Using your own API key (no daily limit)", Colors.GRAY)
        return self._colorize(
            'Free tier active. Run "nob set-api-key" to use your own API key.',
            Colors.GRAY,
        )
