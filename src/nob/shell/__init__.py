"""Terminal front end: line editor, completion, command execution.

The REPL (nob.shell.wrapper) and the approval UI (nob.shell.approval)
depend on the agent package and are imported from their modules directly.
"""

from nob.shell.completer import CompletionIndex
from nob.shell.completion_sources import CompletionSourceError
from nob.shell.editor import EditorAction, EditorEvent, InputState, LineEditor
from nob.shell.executor import CommandResult, CommandRunner
from nob.shell.history import HistoryLog, load_shell_history
from nob.shell.session import SessionContext
from nob.shell.terminal import Colors, InputError, KeyDecoder, Terminal

__all__ = [
    "Colors",
    "CommandResult",
    "CommandRunner",
    "CompletionIndex",
    "CompletionSourceError",
    "EditorAction",
    "EditorEvent",
    "HistoryLog",
    "InputError",
    "InputState",
    "KeyDecoder",
    "LineEditor",
    "SessionContext",
    "Terminal",
    "load_shell_history",
]
