"""Input Routing - Built-in session verbs and mode-based dispatch."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class Builtin(Enum):
    """Verbs handled by the session itself."""

    EXIT = auto()
    AI_ON = auto()
    AI_OFF = auto()
    HELP = auto()
    VERSION = auto()
    CLEAR = auto()
    CLEAR_HISTORY = auto()
    SHOW_CONFIG = auto()


# Matched literally against the trimmed line
BUILTINS: dict[str, Builtin] = {
    "exit": Builtin.EXIT,
    "nob exit": Builtin.EXIT,
    "nob on": Builtin.AI_ON,
    "nob off": Builtin.AI_OFF,
    "nob help": Builtin.HELP,
    "nob --help": Builtin.HELP,
    "nob -h": Builtin.HELP,
    "nob version": Builtin.VERSION,
    "nob --version": Builtin.VERSION,
    "nob -v": Builtin.VERSION,
    "clear": Builtin.CLEAR,
    "nob clear-history": Builtin.CLEAR_HISTORY,
    "nob show-config": Builtin.SHOW_CONFIG,
}


class InputType(Enum):
    """Where a submitted line goes."""

    EMPTY = auto()
    BUILTIN = auto()
    SHELL_COMMAND = auto()  # Run directly (manual mode)
    AI_REQUEST = auto()  # Send to the agent loop (AI mode)


@dataclass
class ClassifiedInput:
    """A submitted line and its route."""

    input_type: InputType
    content: str
    builtin: Optional[Builtin] = None


def parse_builtin(line: str) -> Optional[Builtin]:
    """Return the built-in verb for a line, if it is one."""
    return BUILTINS.get(line.strip())


def classify_input(line: str, ai_enabled: bool) -> ClassifiedInput:
    """Route a submitted line.

    Built-in verbs win in both modes. Everything else is a shell command in
    manual mode and a request for the agent in AI mode.

    Args:
        line: Submitted text
        ai_enabled: Whether the session is in AI mode

    Returns:
        ClassifiedInput
    """
    content = line.strip()
    if not content:
        return ClassifiedInput(InputType.EMPTY, content)

    builtin = parse_builtin(content)
    if builtin is not None:
        return ClassifiedInput(InputType.BUILTIN, content, builtin)

    if ai_enabled:
        return ClassifiedInput(InputType.AI_REQUEST, content)
    return ClassifiedInput(InputType.SHELL_COMMAND, content)
