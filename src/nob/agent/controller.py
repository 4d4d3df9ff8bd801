"""Agent Controller - The propose, approve, execute, feed back loop."""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from nob.agent.interpreter import Action, Conversational, Done, interpret
from nob.agent.llm_client import Message, ModelCallError, RateLimitError, TextGenerationService
from nob.agent.prompts import build_system_prompt, describe_command_result
from nob.config.defaults import DEFAULT_MODEL_TIMEOUT
from nob.config.schemas import AgentConfig
from nob.shell.executor import CommandResult, CommandRunner
from nob.telemetry.logger import LoggerMixin

TASK_COMPLETED = "Task completed!"
EMPTY_REPLY_FALLBACK = "Hello! How can I help?"


class AgentState(Enum):
    """States of one agent task."""

    AWAITING_INPUT = "awaiting_input"
    MODEL_CALL = "model_call"
    INTERPRETING = "interpreting"
    AWAITING_APPROVAL = "awaiting_approval"
    EXECUTING = "executing"
    # Terminal states
    CONVERSATIONAL = "conversational"
    DONE = "done"
    SKIPPED = "skipped"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {AgentState.CONVERSATIONAL, AgentState.DONE, AgentState.SKIPPED, AgentState.ERROR}
)


@dataclass
class ConversationTurn:
    """One message in the conversation window.

    Attributes:
        role: "user" or "assistant"
        content: Message text
        timestamp: Creation time (epoch seconds)
    """

    role: str
    content: str
    timestamp: float = field(default_factory=time.time)

    def to_message(self) -> Message:
        if self.role == "assistant":
            return Message.assistant(self.content)
        return Message.user(self.content)


@dataclass
class TaskOutcome:
    """Result of one call to AgentController.run.

    Attributes:
        state: Terminal state the task ended in
        model_calls: Number of model calls made
        results: Commands executed, in order
        message: Final text shown to the user
        error: Error text when state is ERROR
        cwd: Working directory after the task
    """

    state: AgentState
    model_calls: int = 0
    results: list[CommandResult] = field(default_factory=list)
    message: str = ""
    error: Optional[str] = None
    cwd: str = ""

    @property
    def executed(self) -> int:
        return len(self.results)


class AgentUI(ABC):
    """What the controller shows and asks during a task.

    The terminal implementation lives in nob.shell.approval; tests use
    simple recording fakes.
    """

    @abstractmethod
    def show_thinking(self) -> None:
        """Indicate that a model call is in flight."""

    @abstractmethod
    def show_reply(self, text: str) -> None:
        """Show a conversational reply."""

    @abstractmethod
    def show_proposal(self, action: Action) -> None:
        """Show the thought and command of a proposed action."""

    @abstractmethod
    def confirm(self, command: str) -> bool:
        """Ask the user to approve a command. Returns True to run it."""

    @abstractmethod
    def show_done(self, message: str) -> None:
        """Show the completion message."""

    @abstractmethod
    def show_skipped(self) -> None:
        """Report that the user rejected the command."""

    @abstractmethod
    def show_error(self, message: str, hint: str = "") -> None:
        """Report a failed model call."""


class AgentController(LoggerMixin):
    """State machine driving one natural-language task at a time.

    Each task appends the user's request to the conversation, then loops:
    call the model, interpret the reply, ask for approval, run the command
    and feed its result back, until the model stops continuing, the user
    rejects a command, an error occurs or max_steps model calls were made.

    Example:
        controller = AgentController(service, CommandRunner(), ui)
        outcome = asyncio.run(controller.run("list python files", cwd))
        print(outcome.state)
    """

    def __init__(
        self,
        service: TextGenerationService,
        runner: CommandRunner,
        ui: AgentUI,
        config: Optional[AgentConfig] = None,
        timeout: float = DEFAULT_MODEL_TIMEOUT,
        shell: Optional[str] = None,
        on_cwd_change: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            service: Text generation backend
            runner: Executes approved commands
            ui: Display and approval surface
            config: Step bound and conversation window
            timeout: Seconds allowed for one model call
            shell: Shell name reported to the model
            on_cwd_change: Called with the new directory after a `cd`
        """
        self.service = service
        self.runner = runner
        self.ui = ui
        self.config = config or AgentConfig()
        self.timeout = timeout
        self.shell = shell
        self.on_cwd_change = on_cwd_change

        self.state = AgentState.AWAITING_INPUT
        self._turns: list[ConversationTurn] = []

        self.logger.info(
            "AgentController initialized",
            provider=service.provider,
            model=service.model,
            max_steps=self.config.max_steps,
        )

    @property
    def turns(self) -> list[ConversationTurn]:
        """All conversation turns, oldest first."""
        return list(self._turns)

    def clear_history(self) -> None:
        """Forget the conversation."""
        self._turns.clear()
        self.logger.info("Conversation history cleared")

    def _set_state(self, state: AgentState) -> None:
        self.logger.debug("Agent state", previous=self.state.value, state=state.value)
        self.state = state

    def _build_messages(self, cwd: str) -> list[Message]:
        system = Message.system(build_system_prompt(cwd=cwd, shell=self.shell))
        window = self._turns[-self.config.turn_window:]
        return [system] + [turn.to_message() for turn in window]

    def _finish(self, outcome: TaskOutcome) -> TaskOutcome:
        self._set_state(outcome.state)
        self.logger.info(
            "Task finished",
            state=outcome.state.value,
            model_calls=outcome.model_calls,
            executed=outcome.executed,
        )
        return outcome

    async def run(self, user_input: str, cwd: str) -> TaskOutcome:
        """Run one task to a terminal state.

        Args:
            user_input: The user's request
            cwd: Directory commands run in

        Returns:
            TaskOutcome describing how the task ended
        """
        self._turns.append(ConversationTurn(role="user", content=user_input))
        outcome = TaskOutcome(state=AgentState.AWAITING_INPUT, cwd=cwd)

        self.logger.info("Starting task", request=user_input[:100], cwd=cwd)

        while True:
            if outcome.model_calls >= self.config.max_steps:
                self.logger.warning("Max steps reached", steps=outcome.model_calls)
                outcome.state = AgentState.DONE
                outcome.message = (
                    f"Stopped after {outcome.model_calls} steps. "
                    "Ask again to continue from here."
                )
                self.ui.show_done(outcome.message)
                return self._finish(outcome)

            # MODEL_CALL
            self._set_state(AgentState.MODEL_CALL)
            self.ui.show_thinking()
            outcome.model_calls += 1
            try:
                reply = await asyncio.wait_for(
                    self.service.generate(self._build_messages(outcome.cwd)),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                outcome.state = AgentState.ERROR
                outcome.error = f"Request timed out after {self.timeout:g} seconds"
                self.logger.error("Model call timed out", timeout=self.timeout)
                self.ui.show_error(outcome.error)
                return self._finish(outcome)
            except RateLimitError as e:
                outcome.state = AgentState.ERROR
                outcome.error = e.args[0] if e.args else "Rate limit exceeded"
                self.logger.warning("Model call rate limited", error=outcome.error)
                self.ui.show_error(outcome.error, hint=e.hint)
                return self._finish(outcome)
            except ModelCallError as e:
                outcome.state = AgentState.ERROR
                outcome.error = str(e)
                self.logger.error("Model call failed", error=outcome.error)
                self.ui.show_error(outcome.error)
                return self._finish(outcome)

            self._turns.append(ConversationTurn(role="assistant", content=reply))

            # INTERPRETING
            self._set_state(AgentState.INTERPRETING)
            proposal = interpret(reply)

            if isinstance(proposal, Conversational):
                outcome.state = AgentState.CONVERSATIONAL
                outcome.message = proposal.text or EMPTY_REPLY_FALLBACK
                self.ui.show_reply(outcome.message)
                return self._finish(outcome)

            if isinstance(proposal, Done):
                outcome.state = AgentState.DONE
                outcome.message = proposal.thought or TASK_COMPLETED
                self.ui.show_done(outcome.message)
                return self._finish(outcome)

            # AWAITING_APPROVAL
            self._set_state(AgentState.AWAITING_APPROVAL)
            self.ui.show_proposal(proposal)
            if not self.ui.confirm(proposal.command):
                outcome.state = AgentState.SKIPPED
                outcome.message = "Command skipped"
                self.logger.info("Command rejected", command=proposal.command[:100])
                self.ui.show_skipped()
                return self._finish(outcome)

            # EXECUTING
            self._set_state(AgentState.EXECUTING)
            result = await self.runner.run(proposal.command, outcome.cwd)
            outcome.results.append(result)
            if result.new_cwd:
                outcome.cwd = result.new_cwd
                if self.on_cwd_change:
                    self.on_cwd_change(result.new_cwd)

            if not proposal.continues:
                outcome.state = AgentState.DONE
                outcome.message = TASK_COMPLETED
                self.ui.show_done(outcome.message)
                return self._finish(outcome)

            feedback = describe_command_result(
                result.command,
                result.output[-self.config.output_limit:],
                result.exit_code,
            )
            self._turns.append(ConversationTurn(role="user", content=feedback))
