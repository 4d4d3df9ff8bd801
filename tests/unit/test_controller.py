"""Tests for the agent controller state machine."""

import asyncio

import pytest

from nob.agent.controller import (
    EMPTY_REPLY_FALLBACK,
    TASK_COMPLETED,
    AgentController,
    AgentState,
    ConversationTurn,
    TaskOutcome,
)
from nob.agent.llm_client import MessageRole, ModelCallError, RateLimitError
from nob.config.schemas import AgentConfig
from nob.shell.executor import CommandResult
from tests.conftest import FakeRunner, RecordingUI, ScriptedService


def make_controller(replies, answers=None, runner=None, config=None, timeout=30.0, **kwargs):
    service = ScriptedService(replies)
    ui = RecordingUI(answers)
    runner = runner or FakeRunner()
    controller = AgentController(
        service,
        runner,
        ui,
        config=config,
        timeout=timeout,
        shell="/bin/bash",
        **kwargs,
    )
    return controller, service, ui, runner


class TestAgentState:
    """Tests for AgentState enum."""

    def test_terminal_states(self) -> None:
        """Only the four end states should be terminal."""
        terminal = {state for state in AgentState if state.is_terminal}
        assert terminal == {
            AgentState.CONVERSATIONAL,
            AgentState.DONE,
            AgentState.SKIPPED,
            AgentState.ERROR,
        }


class TestConversationTurn:
    """Tests for ConversationTurn dataclass."""

    def test_to_message(self) -> None:
        """Roles should map onto message roles."""
        assert ConversationTurn("user", "hi").to_message().role == MessageRole.USER
        assert ConversationTurn("assistant", "yo").to_message().role == MessageRole.ASSISTANT

    def test_timestamp_set(self) -> None:
        """Turns should be timestamped on creation."""
        assert ConversationTurn("user", "hi").timestamp > 0


class TestTaskOutcome:
    """Tests for TaskOutcome dataclass."""

    def test_defaults(self) -> None:
        """Should have sensible defaults."""
        outcome = TaskOutcome(state=AgentState.DONE)
        assert outcome.model_calls == 0
        assert outcome.executed == 0
        assert outcome.error is None


class TestAgentControllerRun:
    """Tests for AgentController.run."""

    @pytest.mark.asyncio
    async def test_conversational_reply(self) -> None:
        """A prose reply should end the task without running anything."""
        controller, service, ui, runner = make_controller(["Hello! How can I help?"])

        outcome = await controller.run("hi", "/tmp")

        assert outcome.state == AgentState.CONVERSATIONAL
        assert outcome.message == "Hello! How can I help?"
        assert outcome.model_calls == 1
        assert runner.commands == []
        assert ("reply", "Hello! How can I help?") in ui.events
        assert controller.state == AgentState.CONVERSATIONAL

    @pytest.mark.asyncio
    async def test_empty_reply_shows_greeting(self) -> None:
        """An empty model reply should still show something."""
        controller, _, ui, runner = make_controller(["   "])

        outcome = await controller.run("hi", "/tmp")

        assert outcome.state == AgentState.CONVERSATIONAL
        assert outcome.message == EMPTY_REPLY_FALLBACK
        assert ("reply", EMPTY_REPLY_FALLBACK) in ui.events
        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_single_approved_command(self) -> None:
        """An approved final command should run once and finish."""
        controller, service, ui, runner = make_controller(
            ["THOUGHT: Show it\nCOMMAND: nob show-config\nSTATUS: DONE"],
            answers=[True],
        )

        outcome = await controller.run("what's my config?", "/home/u")

        assert outcome.state == AgentState.DONE
        assert outcome.message == TASK_COMPLETED
        assert runner.commands == [("nob show-config", "/home/u")]
        assert ui.names() == ["thinking", "proposal", "confirm", "done"]

    @pytest.mark.asyncio
    async def test_rejected_command(self) -> None:
        """Rejecting a proposal should skip it and make no further calls."""
        controller, service, ui, runner = make_controller(
            ["COMMAND: rm -rf build\nSTATUS: CONTINUE", "never used"],
            answers=[False],
        )

        outcome = await controller.run("clean up", "/tmp")

        assert outcome.state == AgentState.SKIPPED
        assert outcome.message == "Command skipped"
        assert runner.commands == []
        assert len(service.calls) == 1
        assert ui.names()[-1] == "skipped"

    @pytest.mark.asyncio
    async def test_continue_loop_feeds_results_back(self) -> None:
        """A continuing action should send its result to the next call."""
        runner = FakeRunner({
            "python3 -m venv venv": CommandResult(command="python3 -m venv venv", output=""),
            "venv/bin/pip install requests": CommandResult(
                command="venv/bin/pip install requests",
                output="Successfully installed requests\n",
            ),
        })
        controller, service, ui, _ = make_controller(
            [
                "THOUGHT: venv\nCOMMAND: python3 -m venv venv\nSTATUS: CONTINUE",
                "THOUGHT: deps\nCOMMAND: venv/bin/pip install requests\nSTATUS: CONTINUE",
                "THOUGHT: All set\nSTATUS: DONE",
            ],
            answers=[True, True],
            runner=runner,
        )

        outcome = await controller.run("set up a python project", "/proj")

        assert outcome.state == AgentState.DONE
        assert outcome.message == "All set"
        assert outcome.model_calls == 3
        assert outcome.executed == 2
        assert [c for c, _ in runner.commands] == [
            "python3 -m venv venv",
            "venv/bin/pip install requests",
        ]

        second_call = service.calls[1]
        feedback = second_call[-1].content
        assert second_call[-1].role == MessageRole.USER
        assert "Command executed successfully" in feedback
        assert "$ python3 -m venv venv" in feedback
        assert "(no output)" in feedback

    @pytest.mark.asyncio
    async def test_failed_command_reported(self) -> None:
        """A non-zero exit code should be reported as a failure."""
        runner = FakeRunner({
            "make": CommandResult(command="make", output="No targets\n", exit_code=2, success=False),
        })
        controller, service, ui, _ = make_controller(
            ["COMMAND: make\nSTATUS: CONTINUE", "THOUGHT: No makefile here\nSTATUS: DONE"],
            runner=runner,
        )

        await controller.run("build", "/tmp")

        assert "Command failed (exit code 2)" in service.calls[1][-1].content

    @pytest.mark.asyncio
    async def test_output_truncated_for_model(self) -> None:
        """Only the tail of long output should be sent back."""
        runner = FakeRunner({"cat big": CommandResult(command="cat big", output="x" * 50 + "END")})
        controller, service, ui, _ = make_controller(
            ["COMMAND: cat big\nSTATUS: CONTINUE", "STATUS: DONE"],
            runner=runner,
            config=AgentConfig(output_limit=10),
        )

        await controller.run("show", "/tmp")

        feedback = service.calls[1][-1].content
        assert feedback.endswith("xxxxxxxEND")
        assert "x" * 11 not in feedback

    @pytest.mark.asyncio
    async def test_done_without_thought_uses_default_message(self) -> None:
        """A bare STATUS: DONE should report the default completion text."""
        controller, _, ui, _ = make_controller(["STATUS: DONE"])

        outcome = await controller.run("anything", "/tmp")

        assert outcome.message == TASK_COMPLETED
        assert ("done", TASK_COMPLETED) in ui.events

    @pytest.mark.asyncio
    async def test_cd_propagates_cwd(self) -> None:
        """A directory change should update later commands and the callback."""
        seen = []
        runner = FakeRunner({
            "cd src": CommandResult(command="cd src", output="Changed to /proj/src", new_cwd="/proj/src"),
        })
        controller, _, _, _ = make_controller(
            ["COMMAND: cd src\nSTATUS: CONTINUE", "COMMAND: ls\nSTATUS: DONE"],
            runner=runner,
            on_cwd_change=seen.append,
        )

        outcome = await controller.run("go to src and list", "/proj")

        assert runner.commands == [("cd src", "/proj"), ("ls", "/proj/src")]
        assert outcome.cwd == "/proj/src"
        assert seen == ["/proj/src"]


class TestAgentControllerErrors:
    """Tests for model call failures."""

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """A slow model call should end in ERROR with the timeout message."""

        class SlowService(ScriptedService):
            async def generate(self, messages):
                await asyncio.sleep(5)
                return "late"

        ui = RecordingUI()
        controller = AgentController(SlowService([]), FakeRunner(), ui, timeout=0.01)

        outcome = await controller.run("hi", "/tmp")

        assert outcome.state == AgentState.ERROR
        assert outcome.error == "Request timed out after 0.01 seconds"
        assert ui.events[-1][0] == "error"

    @pytest.mark.asyncio
    async def test_rate_limit_shows_hint(self) -> None:
        """A rate limit should surface its remediation hint."""
        controller, _, ui, _ = make_controller(
            [RateLimitError("Rate limit exceeded", hint="Run nob set-api-key")]
        )

        outcome = await controller.run("hi", "/tmp")

        assert outcome.state == AgentState.ERROR
        assert outcome.error == "Rate limit exceeded"
        assert ui.events[-1] == ("error", "Rate limit exceeded", "Run nob set-api-key")

    @pytest.mark.asyncio
    async def test_model_error(self) -> None:
        """Other model failures should end in ERROR without retrying."""
        controller, service, ui, _ = make_controller(
            [ModelCallError("Backend API error: 500"), "unused"]
        )

        outcome = await controller.run("hi", "/tmp")

        assert outcome.state == AgentState.ERROR
        assert outcome.error == "Backend API error: 500"
        assert len(service.calls) == 1

    @pytest.mark.asyncio
    async def test_max_steps(self) -> None:
        """The loop should stop after max_steps model calls."""
        replies = [f"COMMAND: echo {i}\nSTATUS: CONTINUE" for i in range(5)]
        controller, service, ui, runner = make_controller(
            replies,
            config=AgentConfig(max_steps=2),
        )

        outcome = await controller.run("loop forever", "/tmp")

        assert outcome.state == AgentState.DONE
        assert outcome.model_calls == 2
        assert len(runner.commands) == 2
        assert outcome.message.startswith("Stopped after 2 steps")


class TestConversationWindow:
    """Tests for the conversation history sent to the model."""

    @pytest.mark.asyncio
    async def test_system_prompt_first(self) -> None:
        """Every call should start with the system prompt."""
        controller, service, _, _ = make_controller(["hello"])

        await controller.run("hi", "/work/dir")

        messages = service.calls[0]
        assert messages[0].role == MessageRole.SYSTEM
        assert "Directory: /work/dir" in messages[0].content
        assert messages[-1].content == "hi"

    @pytest.mark.asyncio
    async def test_history_persists_across_tasks(self) -> None:
        """Earlier tasks should be visible to later ones."""
        controller, service, _, _ = make_controller(["first answer", "second answer"])

        await controller.run("first", "/tmp")
        await controller.run("second", "/tmp")

        contents = [m.content for m in service.calls[1][1:]]
        assert contents == ["first", "first answer", "second"]

    @pytest.mark.asyncio
    async def test_window_limited(self) -> None:
        """Only the last turn_window turns should be sent."""
        replies = [f"answer {i}" for i in range(8)]
        controller, service, _, _ = make_controller(replies)

        for i in range(8):
            await controller.run(f"question {i}", "/tmp")

        last_call = service.calls[-1]
        assert len(last_call) == 1 + 10
        assert last_call[-1].content == "question 7"
        assert len(controller.turns) == 16

    @pytest.mark.asyncio
    async def test_clear_history(self) -> None:
        """Clearing should forget every turn."""
        controller, service, _, _ = make_controller(["a", "b"])

        await controller.run("one", "/tmp")
        controller.clear_history()
        await controller.run("two", "/tmp")

        assert [m.content for m in service.calls[1][1:]] == ["two"]


class TestListFilesScenario:
    """One approved, final command ends the task after a single model call."""

    @pytest.mark.asyncio
    async def test_list_files(self) -> None:
        controller, service, ui, runner = make_controller(
            ["THOUGHT: check dir\nCOMMAND: ls\nSTATUS: DONE", "never used"],
            answers=[True],
        )

        outcome = await controller.run("list files", "/home/u")

        assert runner.commands == [("ls", "/home/u")]
        assert len(service.calls) == 1
        assert outcome.state == AgentState.DONE
        assert outcome.executed == 1
