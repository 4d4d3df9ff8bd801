"""Terminal - Raw-mode keyboard input and cursor-addressed output.

The editor talks to the terminal only through this module: key names come
out of ``Terminal.read_key`` and screen updates go through ``move_to``,
``clear_line`` and ``write``. Output is buffered until ``flush`` so one
repaint reaches the terminal as a single write.
"""

import os
import re
import select
import sys
import termios
from contextlib import contextmanager
from typing import IO, Iterator, Optional

from nob.telemetry.logger import get_logger

logger = get_logger(__name__)

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24

# Seconds to wait for the rest of an escape sequence or a cursor report
ESCAPE_TIMEOUT = 0.05
CURSOR_QUERY_TIMEOUT = 0.5

_CURSOR_REPORT_RE = re.compile(rb"\x1b\[(\d+);(\d+)R")


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    GRAY = "\033[90m"


class InputError(Exception):
    """A byte sequence from the keyboard that maps to no known key."""


class KeyDecoder:
    """Maps raw keyboard byte sequences to key names.

    Named keys are returned as upper-case names (``ENTER``, ``LEFT``, ...);
    printable input is returned as the character itself.

    Example:
        decoder = KeyDecoder()
        decoder.decode(b"\\x1b[A")  # "UP"
        decoder.decode(b"a")        # "a"
    """

    SEQUENCES: dict[bytes, str] = {
        b"\r": "ENTER",
        b"\n": "ENTER",
        b"\x7f": "BACKSPACE",
        b"\x08": "BACKSPACE",
        b"\t": "TAB",
        b"\x03": "CTRL_C",
        b"\x04": "CTRL_D",
        b"\x01": "HOME",
        b"\x05": "END",
        b"\x1b": "ESCAPE",
        b"\x1b[A": "UP",
        b"\x1b[B": "DOWN",
        b"\x1b[C": "RIGHT",
        b"\x1b[D": "LEFT",
        b"\x1bOA": "UP",
        b"\x1bOB": "DOWN",
        b"\x1bOC": "RIGHT",
        b"\x1bOD": "LEFT",
        b"\x1b[H": "HOME",
        b"\x1bOH": "HOME",
        b"\x1b[1~": "HOME",
        b"\x1b[7~": "HOME",
        b"\x1b[F": "END",
        b"\x1bOF": "END",
        b"\x1b[4~": "END",
        b"\x1b[8~": "END",
        b"\x1b[3~": "DELETE",
    }

    def decode(self, data: bytes) -> str:
        """Decode one key press.

        Args:
            data: Bytes read for a single key

        Returns:
            Key name or printable character

        Raises:
            InputError: If the bytes are not a known key
        """
        name = self.SEQUENCES.get(data)
        if name:
            return name

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InputError(f"Undecodable input: {data!r}") from e

        if len(text) == 1 and text.isprintable():
            return text
        raise InputError(f"Unknown key sequence: {data!r}")


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class Terminal:
    """The user's terminal.

    Example:
        terminal = Terminal()
        with terminal.raw_mode():
            key = terminal.read_key()
            terminal.move_to(5, 1)
            terminal.clear_line()
            terminal.write("hello", Colors.GREEN)
            terminal.flush()
    """

    def __init__(
        self,
        input_fd: Optional[int] = None,
        output: Optional[IO[str]] = None,
        size: Optional[tuple[int, int]] = None,
    ) -> None:
        """Initialize the terminal.

        Args:
            input_fd: Keyboard file descriptor (defaults to stdin)
            output: Text stream for screen output (defaults to stdout)
            size: Fixed (columns, rows); queried from the terminal if omitted
        """
        self.input_fd = sys.stdin.fileno() if input_fd is None else input_fd
        self.output = output or sys.stdout
        self._fixed_size = size
        self._pending: list[str] = []
        self.decoder = KeyDecoder()

    @contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Deliver key presses immediately and unechoed.

        Output post-processing stays on so "\\n" still returns the carriage.
        The previous terminal attributes are restored on exit.
        """
        try:
            saved = termios.tcgetattr(self.input_fd)
        except termios.error as e:
            logger.debug("Not a terminal, raw mode unavailable", error=str(e))
            yield
            return

        attrs = termios.tcgetattr(self.input_fd)
        attrs[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
        attrs[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self.input_fd, termios.TCSAFLUSH, attrs)
        try:
            yield
        finally:
            termios.tcsetattr(self.input_fd, termios.TCSAFLUSH, saved)

    def size(self) -> tuple[int, int]:
        """Terminal (columns, rows), 80x24 when unknown."""
        if self._fixed_size:
            return self._fixed_size
        try:
            size = os.get_terminal_size(self.output.fileno())
        except (OSError, ValueError, AttributeError):
            return DEFAULT_COLUMNS, DEFAULT_ROWS
        return size.columns or DEFAULT_COLUMNS, size.lines or DEFAULT_ROWS

    @property
    def columns(self) -> int:
        return self.size()[0]

    @property
    def rows(self) -> int:
        return self.size()[1]

    def _read_byte(self, timeout: Optional[float] = None) -> Optional[bytes]:
        if timeout is not None:
            ready, _, _ = select.select([self.input_fd], [], [], timeout)
            if not ready:
                return None
        data = os.read(self.input_fd, 1)
        if not data:
            raise EOFError("Input closed")
        return data

    def read_key(self) -> str:
        """Block until one key is pressed and return its name.

        Raises:
            InputError: For sequences that are not a known key
            EOFError: If the input is closed
        """
        data = self._read_byte()

        if data == b"\x1b":
            # A lone ESC is the Escape key; otherwise collect the sequence
            while len(data) < 8:
                more = self._read_byte(timeout=ESCAPE_TIMEOUT)
                if more is None:
                    break
                data += more
                if len(data) >= 3 and (more.isalpha() or more == b"~"):
                    break
        else:
            for _ in range(_utf8_length(data[0]) - 1):
                more = self._read_byte(timeout=ESCAPE_TIMEOUT)
                if more is None:
                    break
                data += more

        return self.decoder.decode(data)

    def query_cursor_row(self, timeout: float = CURSOR_QUERY_TIMEOUT) -> Optional[int]:
        """Ask the terminal for the cursor's row (1-based).

        Must be called in raw mode. Returns None if the terminal does not
        answer in time or answers with something unexpected.
        """
        self.flush()
        try:
            self.output.write("\x1b[6n")
            self.output.flush()
            response = b""
            while not response.endswith(b"R") and len(response) < 32:
                byte = self._read_byte(timeout=timeout)
                if byte is None:
                    break
                response += byte
        except (OSError, ValueError, EOFError) as e:
            logger.debug("Cursor query failed", error=str(e))
            return None

        match = _CURSOR_REPORT_RE.search(response)
        if not match:
            logger.debug("No cursor report", response=repr(response))
            return None
        return int(match.group(1))

    def move_to(self, row: int, col: int) -> None:
        self._pending.append(f"\x1b[{row};{col}H")

    def clear_line(self) -> None:
        """Clear from the cursor to the end of the line."""
        self._pending.append("\x1b[K")

    def clear_screen(self) -> None:
        self._pending.append("\x1b[2J\x1b[H")

    def write(self, text: str, style: Optional[str] = None) -> None:
        if style:
            self._pending.append(f"{style}{text}{Colors.RESET}")
        else:
            self._pending.append(text)

    def flush(self) -> None:
        if self._pending:
            self.output.write("".join(self._pending))
            self._pending.clear()
        self.output.flush()
