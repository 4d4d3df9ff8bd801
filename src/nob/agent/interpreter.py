"""Response Interpreter - Turns model replies into typed proposals.

Recognized reply grammar (labels are case-insensitive, every field optional)::

    THOUGHT: <free text up to the end of the line>
    COMMAND: <one shell command, back-ticks are stripped>
    STATUS: CONTINUE | DONE

Decision order:

1. A non-empty COMMAND gives ``Action``; it continues only when
   ``STATUS: CONTINUE`` is present.
2. ``STATUS: DONE`` without a command gives ``Done``.
3. A back-ticked span or a first line that starts with a known command
   verb gives a non-continuing ``Action``.
4. Anything else is ``Conversational``.

``interpret`` is pure: the same text always yields an equal proposal.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

# Verbs accepted when the model answers with a bare command. Commands outside
# this list are read as prose.
COMMAND_VERBS = (
    "source", "ls", "cd", "mkdir", "rm", "cp", "mv", "cat", "grep", "find",
    "git", "npm", "node", "python", "pip", "echo", "pwd", "chmod", "sudo",
    "brew", "yarn", "pnpm", "docker", "kubectl", "make", "go", "cargo",
    "curl", "wget", "ssh", "tar", "zip",
)

_VERB_GROUP = "|".join(re.escape(v) for v in COMMAND_VERBS)

_THOUGHT_RE = re.compile(r"THOUGHT:\s*(.*?)[ \t]*(?=\n|COMMAND:|STATUS:|$)", re.IGNORECASE)
_COMMAND_RE = re.compile(r"COMMAND:[ \t]*(.*?)[ \t]*(?=\n|STATUS:|$)", re.IGNORECASE)
_STATUS_RE = re.compile(r"STATUS:\s*(CONTINUE|DONE)\b", re.IGNORECASE)
_LABEL_RE = re.compile(r"^\s*(THOUGHT|COMMAND|STATUS):", re.IGNORECASE)
_BACKTICK_RE = re.compile(r"`([^`]+)`")
_QUOTED_VERB_RE = re.compile(rf"^(?:{_VERB_GROUP})", re.IGNORECASE)
_LINE_VERB_RE = re.compile(rf"^(?:{_VERB_GROUP})\s", re.IGNORECASE)


@dataclass(frozen=True)
class Conversational:
    """A plain reply with nothing to run."""

    text: str


@dataclass(frozen=True)
class Action:
    """A command proposed for approval."""

    command: str
    thought: str = ""
    continues: bool = False


@dataclass(frozen=True)
class Done:
    """The model reports the task finished without a further command."""

    thought: str = ""


Proposal = Union[Conversational, Action, Done]


def interpret(raw_text: str) -> Proposal:
    """Interpret a model reply.

    Args:
        raw_text: Reply text exactly as returned by the model

    Returns:
        Conversational, Action or Done
    """
    text = raw_text or ""

    thought_match = _THOUGHT_RE.search(text)
    thought = thought_match.group(1).strip() if thought_match else ""

    status_match = _STATUS_RE.search(text)
    status = status_match.group(1).upper() if status_match else None

    command = _extract_command(text)
    if command:
        return Action(command=command, thought=thought, continues=status == "CONTINUE")

    if status == "DONE":
        return Done(thought=thought)

    fallback = _detect_bare_command(text)
    if fallback:
        return Action(command=fallback)

    return Conversational(text=text.strip())


def _clean_command(value: str) -> str:
    return value.replace("`", "").strip()


def _extract_command(text: str) -> Optional[str]:
    match = _COMMAND_RE.search(text)
    if not match:
        return None

    command = _clean_command(match.group(1))
    if command:
        return command

    # "COMMAND:" alone on its line, possibly followed by a fenced block
    for line in text[match.end():].splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("```"):
            continue
        if _LABEL_RE.match(line):
            return None
        return _clean_command(stripped) or None
    return None


def _detect_bare_command(text: str) -> Optional[str]:
    quoted = _BACKTICK_RE.search(text)
    if quoted:
        candidate = quoted.group(1).strip()
        if _QUOTED_VERB_RE.match(candidate):
            return candidate

    stripped = text.strip()
    if not stripped:
        return None
    first_line = stripped.split("\n", 1)[0].strip()
    if _LINE_VERB_RE.match(first_line):
        return first_line
    return None
