"""Human-in-the-Loop Approval - Terminal display and single-key approval."""

import sys
from typing import Callable, Optional

from nob.agent.controller import AgentUI
from nob.agent.interpreter import Action
from nob.shell.terminal import Colors, InputError, Terminal
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)

APPROVE_KEYS = ("y", "Y")
REJECT_KEYS = ("n", "N", "ESCAPE", "CTRL_C")


class TerminalAgentUI(AgentUI):
    """Shows agent progress on the terminal and asks for approval.

    Approval is a single key press: y runs the command, n or Escape skips
    it. Other keys are ignored.

    Example:
        ui = TerminalAgentUI()
        if ui.confirm("rm -rf build"):
            ...
    """

    def __init__(
        self,
        use_color: bool = True,
        key_reader: Optional[Callable[[], str]] = None,
        output_func: Optional[Callable[[str], None]] = None,
        terminal: Optional[Terminal] = None,
    ) -> None:
        """Initialize the UI.

        Args:
            use_color: Whether to use ANSI colors
            key_reader: Returns one key name per call (for testing)
            output_func: Writes raw text (for testing)
            terminal: Terminal used by the default key reader
        """
        self.use_color = use_color
        self._terminal = terminal
        self._read_key = key_reader or self._default_read_key
        self._output = output_func or self._default_output
        self._thinking = False

    def _default_output(self, text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def _default_read_key(self) -> str:
        if self._terminal is None:
            self._terminal = Terminal()
        with self._terminal.raw_mode():
            while True:
                try:
                    return self._terminal.read_key()
                except InputError:
                    continue

    def _colorize(self, text: str, color: str) -> str:
        if self.use_color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _clear_thinking(self) -> None:
        if self._thinking:
            self._output("\r\x1b[K")
            self._thinking = False

    def _line(self, text: str) -> None:
        self._clear_thinking()
        self._output(text + "\n")

    def show_thinking(self) -> None:
        self._clear_thinking()
        self._output(self._colorize("  Thinking...", Colors.GRAY))
        self._thinking = True

    def show_reply(self, text: str) -> None:
        self._line(self._colorize("◆ nob: ", Colors.BOLD + Colors.MAGENTA) + text)

    def show_proposal(self, action: Action) -> None:
        if action.thought:
            self._line(self._colorize(f"💭 {action.thought}", Colors.GRAY))
        self._line(self._colorize("$ ", Colors.GRAY) + self._colorize(action.command, Colors.YELLOW))
        if action.continues:
            self._line(self._colorize("   (more steps to follow)", Colors.GRAY))
        self._line("")
        self._line(
            self._colorize("[y]", Colors.BOLD + Colors.GREEN)
            + self._colorize(" run  ", Colors.GRAY)
            + self._colorize("[n]", Colors.BOLD + Colors.RED)
            + self._colorize(" skip", Colors.GRAY)
        )

    def confirm(self, command: str) -> bool:
        """Wait for y (run) or n/Escape (skip)."""
        while True:
            try:
                key = self._read_key()
            except EOFError:
                key = "n"
            if key in APPROVE_KEYS:
                approved = True
                break
            if key in REJECT_KEYS:
                approved = False
                break

        logger.info("Approval decision", command=command[:100], approved=approved)
        if approved:
            self._line(
                self._colorize("$ ", Colors.GRAY)
                + self._colorize(command, Colors.YELLOW)
                + self._colorize(" ✓", Colors.GREEN)
            )
        else:
            self._line(self._colorize("$ ", Colors.GRAY) + self._colorize(f"{command} ✗", Colors.RED))
        return approved

    def show_done(self, message: str) -> None:
        self._line(self._colorize(f"✓ {message}", Colors.GRAY))

    def show_skipped(self) -> None:
        self._line(self._colorize("✗ Command skipped. Stopping task.", Colors.GRAY))

    def show_error(self, message: str, hint: str = "") -> None:
        self._line(self._colorize(f"✗ Error: {message}", Colors.RED))
        if hint:
            self._line(self._colorize(hint, Colors.GRAY))
