"""Line Editor - Raw keystroke editing with inline autosuggestion.

The editor keeps the state of the line being typed and repaints it after
every key. Long lines soft-wrap, so the repaint clears every row the line
may occupy and places the cursor by counting characters from the start
row rather than trusting the terminal's own wrapping.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nob.shell.completer import CompletionIndex
from nob.shell.session import SessionContext
from nob.shell.terminal import Colors, InputError, Terminal
from nob.telemetry.logger import LoggerMixin

MARGIN = 2
PLACEHOLDER = "Type a command or question..."

# Rows kept free below the prompt when the cursor position is unknown
FALLBACK_ROW_OFFSET = 10


@dataclass
class InputState:
    """The line being edited.

    Attributes:
        buffer: Current text
        cursor: Insertion point, 0 <= cursor <= len(buffer)
        history_index: Entry being browsed, -1 when editing the live line
        saved_draft: Live line saved when history browsing started
        last_accepted_suggestion: Suggestion most recently accepted with Right
    """

    buffer: str = ""
    cursor: int = 0
    history_index: int = -1
    saved_draft: str = ""
    last_accepted_suggestion: str = ""

    def reset(self) -> None:
        self.buffer = ""
        self.cursor = 0
        self.history_index = -1
        self.saved_draft = ""
        self.last_accepted_suggestion = ""

    def set_text(self, text: str) -> None:
        """Replace the buffer and move the cursor to its end."""
        self.buffer = text
        self.cursor = len(text)


class EditorAction(Enum):
    """What a key press asks the caller to do."""

    SUBMIT = "submit"
    EXIT = "exit"


@dataclass
class EditorEvent:
    """A key press that ends editing."""

    action: EditorAction
    text: str = ""


class LineEditor(LoggerMixin):
    """Single-line editor driven one key at a time.

    Example:
        editor = LineEditor(Terminal(), session, completer)
        event = editor.read_line()
        if event.action == EditorAction.SUBMIT:
            handle(event.text)
    """

    def __init__(
        self,
        terminal: Terminal,
        session: SessionContext,
        completer: Optional[CompletionIndex] = None,
    ) -> None:
        """Initialize the editor.

        Args:
            terminal: Terminal to read keys from and paint on
            session: Session providing mode and history
            completer: Source of inline suggestions (manual mode)
        """
        self.terminal = terminal
        self.session = session
        self.completer = completer
        self.state = InputState()
        self.input_start_row = 1
        self._painted_rows = 1

        self._handlers = {
            "ENTER": self._on_enter,
            "BACKSPACE": self._on_backspace,
            "DELETE": self._on_delete,
            "LEFT": self._on_left,
            "RIGHT": self._on_right,
            "UP": self._on_up,
            "DOWN": self._on_down,
            "TAB": self._on_tab,
            "HOME": self._on_home,
            "END": self._on_end,
            "CTRL_C": self._on_ctrl_c,
            "CTRL_D": self._on_ctrl_d,
        }

    def begin(self, start_row: Optional[int] = None) -> None:
        """Start editing a fresh line at start_row (queried if omitted)."""
        self.state.reset()
        if start_row is None:
            start_row = self.terminal.query_cursor_row()
        if start_row is None:
            start_row = max(1, self.terminal.rows - FALLBACK_ROW_OFFSET)
            self.logger.debug("Cursor query failed, using fallback row", row=start_row)
        self.input_start_row = start_row
        self.repaint()

    def read_line(self) -> EditorEvent:
        """Edit one line in raw mode until it is submitted or exit is requested."""
        with self.terminal.raw_mode():
            self.begin()
            while True:
                try:
                    key = self.terminal.read_key()
                except InputError as e:
                    self.logger.debug("Ignoring key", error=str(e))
                    continue
                except EOFError:
                    return EditorEvent(EditorAction.EXIT)

                event = self.handle_key(key)
                if event is not None:
                    self._leave_input_area()
                    return event

    def _leave_input_area(self) -> None:
        self.terminal.move_to(self.input_start_row + self._painted_rows - 1, 1)
        self.terminal.write("\n")
        self.terminal.flush()

    # Suggestions

    def suggestion(self) -> Optional[str]:
        """Top completion for the buffer (manual mode only)."""
        if self.session.ai_enabled or not self.completer or not self.state.buffer:
            return None
        return self.completer.suggest(self.state.buffer)

    def suggestion_remainder(self) -> str:
        suggestion = self.suggestion()
        if suggestion and len(suggestion) > len(self.state.buffer):
            return suggestion[len(self.state.buffer):]
        return ""

    def _accept_suggestion(self) -> bool:
        suggestion = self.suggestion()
        if not suggestion or suggestion == self.state.buffer:
            return False
        self.state.set_text(suggestion)
        self.state.last_accepted_suggestion = suggestion
        return True

    # Key handling

    def handle_key(self, key: str) -> Optional[EditorEvent]:
        """Apply one key press.

        Args:
            key: Key name from KeyDecoder or a printable character

        Returns:
            An EditorEvent when the key ends editing, else None
        """
        handler = self._handlers.get(key)
        if handler is not None:
            return handler()

        if len(key) == 1 and key.isprintable():
            state = self.state
            state.buffer = state.buffer[: state.cursor] + key + state.buffer[state.cursor:]
            state.cursor += 1
            state.last_accepted_suggestion = ""
            self.repaint()
        return None

    def _on_enter(self) -> EditorEvent:
        text = self.state.buffer.strip()
        if text:
            self.session.history.add(text)
        self.state.reset()
        return EditorEvent(EditorAction.SUBMIT, text)

    def _on_backspace(self) -> None:
        state = self.state
        if state.cursor > 0:
            state.buffer = state.buffer[: state.cursor - 1] + state.buffer[state.cursor:]
            state.cursor -= 1
            self.repaint()

    def _on_delete(self) -> None:
        state = self.state
        if state.cursor < len(state.buffer):
            state.buffer = state.buffer[: state.cursor] + state.buffer[state.cursor + 1:]
            self.repaint()

    def _on_left(self) -> None:
        if self.state.cursor > 0:
            self.state.cursor -= 1
            self.repaint()

    def _on_right(self) -> None:
        state = self.state
        if state.cursor < len(state.buffer):
            state.cursor += 1
        elif not self.session.ai_enabled:
            suggestion = self.suggestion()
            if suggestion and suggestion != state.buffer and suggestion != state.last_accepted_suggestion:
                state.set_text(suggestion)
                state.last_accepted_suggestion = suggestion
        self.repaint()

    def _on_up(self) -> None:
        state = self.state
        history = self.session.history
        if not len(history):
            return
        if state.history_index == -1:
            state.saved_draft = state.buffer
            state.history_index = len(history) - 1
        elif state.history_index > 0:
            state.history_index -= 1
        state.set_text(history[state.history_index])
        self.repaint()

    def _on_down(self) -> None:
        state = self.state
        history = self.session.history
        if state.history_index == -1:
            return
        if state.history_index < len(history) - 1:
            state.history_index += 1
            state.set_text(history[state.history_index])
        else:
            state.history_index = -1
            state.set_text(state.saved_draft)
        self.repaint()

    def _on_tab(self) -> None:
        if not self.session.ai_enabled and self._accept_suggestion():
            self.repaint()

    def _on_home(self) -> None:
        self.state.cursor = 0
        self.repaint()

    def _on_end(self) -> None:
        self.state.cursor = len(self.state.buffer)
        self.repaint()

    def _on_ctrl_c(self) -> None:
        self.state.buffer = ""
        self.state.cursor = 0
        self.repaint()

    def _on_ctrl_d(self) -> Optional[EditorEvent]:
        if not self.state.buffer:
            return EditorEvent(EditorAction.EXIT)
        return None

    # Painting

    def _row_count(self, remainder: str) -> int:
        width = self.terminal.columns
        return max(1, math.ceil((MARGIN + len(self.state.buffer + remainder)) / width))

    def cursor_position(self) -> tuple[int, int]:
        """Screen (row, column) of the cursor, both 1-based."""
        width = self.terminal.columns
        offset = MARGIN + self.state.cursor
        return self.input_start_row + offset // width, offset % width + 1

    def repaint(self) -> None:
        """Redraw the input rows and place the cursor."""
        terminal = self.terminal
        remainder = self.suggestion_remainder()
        self._painted_rows = self._row_count(remainder)

        for i in range(self._painted_rows):
            terminal.move_to(self.input_start_row + i, 1)
            terminal.clear_line()

        terminal.move_to(self.input_start_row, 1)
        terminal.write(" " * MARGIN)
        if self.state.buffer:
            terminal.write(self.state.buffer)
            if remainder:
                terminal.write(remainder, Colors.GRAY)
        else:
            terminal.write(PLACEHOLDER, Colors.GRAY)

        terminal.move_to(*self.cursor_position())
        terminal.flush()
