"""Pytest configuration and fixtures."""

import io
from pathlib import Path
from typing import Optional

import pytest

from nob.agent.controller import AgentUI
from nob.agent.interpreter import Action
from nob.agent.llm_client import Message, TextGenerationService
from nob.config.schemas import Mode, NobConfig
from nob.config.store import CredentialStore
from nob.shell.executor import CommandResult
from nob.shell.session import SessionContext
from nob.shell.terminal import Terminal


class ScriptedService(TextGenerationService):
    """Text service that replays canned replies (or raises canned errors)."""

    def __init__(self, replies: list) -> None:
        self.replies = list(replies)
        self.calls: list[list[Message]] = []

    @property
    def provider(self) -> str:
        return "scripted"

    @property
    def model(self) -> str:
        return "test-model"

    async def generate(self, messages: list[Message]) -> str:
        self.calls.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeRunner:
    """Command runner that records commands instead of running them."""

    shell = "/bin/sh"

    def __init__(self, results: Optional[dict[str, CommandResult]] = None) -> None:
        self.results = results or {}
        self.commands: list[tuple[str, str]] = []

    async def run(self, command: str, cwd: str) -> CommandResult:
        self.commands.append((command, cwd))
        return self.results.get(command, CommandResult(command=command, output="ok\n"))


class RecordingUI(AgentUI):
    """AgentUI that records every call and answers confirm() from a list."""

    def __init__(self, answers: Optional[list[bool]] = None) -> None:
        self.answers = list(answers or [])
        self.events: list[tuple] = []

    def show_thinking(self) -> None:
        self.events.append(("thinking",))

    def show_reply(self, text: str) -> None:
        self.events.append(("reply", text))

    def show_proposal(self, action: Action) -> None:
        self.events.append(("proposal", action.command))

    def confirm(self, command: str) -> bool:
        self.events.append(("confirm", command))
        return self.answers.pop(0) if self.answers else True

    def show_done(self, message: str) -> None:
        self.events.append(("done", message))

    def show_skipped(self) -> None:
        self.events.append(("skipped",))

    def show_error(self, message: str, hint: str = "") -> None:
        self.events.append(("error", message, hint))

    def names(self) -> list[str]:
        return [event[0] for event in self.events]


@pytest.fixture
def test_config() -> NobConfig:
    """Create a test configuration."""
    config = NobConfig()
    config.shell.use_color = False
    return config


@pytest.fixture
def credential_store(tmp_path: Path) -> CredentialStore:
    """Credential store inside a temporary directory."""
    return CredentialStore(tmp_path / "nob" / "config.json")


@pytest.fixture
def session(tmp_path: Path) -> SessionContext:
    """Session rooted in a temporary directory, in manual mode."""
    return SessionContext(cwd=str(tmp_path), mode=Mode.OFF)


@pytest.fixture
def terminal() -> Terminal:
    """Terminal writing to memory with a fixed 80x24 size."""
    return Terminal(input_fd=-1, output=io.StringIO(), size=(80, 24))


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
llm:
  model: "@cf/test/model"
  timeout_seconds: 5

agent:
  max_steps: 3

shell:
  mode: "off"
  use_color: false

log_level: DEBUG
""")
    return config_file
