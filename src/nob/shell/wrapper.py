"""Shell Wrapper - Main REPL interface for nob."""

import asyncio
from typing import TYPE_CHECKING, Callable, Optional

from nob.config.schemas import Mode
from nob.config.store import CredentialStore
from nob.shell.builtins import Builtin, ClassifiedInput, InputType, classify_input
from nob.shell.completer import CompletionIndex
from nob.shell.editor import EditorAction, LineEditor
from nob.shell.executor import CommandRunner
from nob.shell.help import format_config_summary, format_session_help
from nob.shell.history import load_shell_history
from nob.shell.prompt import PromptRenderer
from nob.shell.session import SessionContext
from nob.shell.terminal import Colors, Terminal
from nob.telemetry.logger import LoggerMixin, bind_context, get_logger

if TYPE_CHECKING:
    from nob.agent.controller import AgentController, TaskOutcome
    from nob.config.schemas import NobConfig

logger = get_logger(__name__)


class ShellWrapper(LoggerMixin):
    """The interactive nob session.

    Each submitted line is routed to a built-in verb, run directly (manual
    mode) or handed to the agent loop (AI mode). The editor and the agent
    loop take turns; nothing runs while the user is typing.

    Example:
        config = load_config()
        shell = ShellWrapper(config)
        shell.set_controller(create_controller(config, TerminalAgentUI()))
        shell.run()
    """

    def __init__(
        self,
        config: "NobConfig",
        session: Optional[SessionContext] = None,
        terminal: Optional[Terminal] = None,
        completer: Optional[CompletionIndex] = None,
        runner: Optional[CommandRunner] = None,
        credential_store: Optional[CredentialStore] = None,
        version: str = "",
    ) -> None:
        """Initialize the shell wrapper.

        Args:
            config: nob configuration
            session: Session state (created from config if omitted)
            terminal: Terminal to draw on
            completer: Completion index for autosuggestion
            runner: Runs commands in manual mode
            credential_store: Store whose path `nob show-config` reports
            version: Version shown by `nob version` and the welcome screen
        """
        self.config = config
        self.version = version
        self.session = session or SessionContext(mode=config.initial_mode())
        self.terminal = terminal or Terminal()
        self.credential_store = credential_store or CredentialStore()
        self.use_color = config.shell.use_color

        if completer is None:
            completer = CompletionIndex(
                cwd=self.session.cwd,
                shell_history=load_shell_history(max_lines=config.shell.history_lines),
                max_results=config.completion.max_results,
                cache_size=config.completion.cache_size,
                query_timeout=config.completion.query_timeout,
            )
        self.completer = completer
        self.session.on_cwd_change(self._on_cwd_change)

        self.runner = runner or CommandRunner(
            shell=config.shell.backend,
            output_limit=config.agent.output_limit,
        )
        self.editor = LineEditor(self.terminal, self.session, self.completer)
        self._prompt = PromptRenderer(use_color=self.use_color, version=version)

        self._controller: Optional["AgentController"] = None
        self._task_handler: Optional[Callable[[str, str], "TaskOutcome"]] = None
        self._running = False

        self.logger.info(
            "ShellWrapper initialized",
            mode=self.session.mode.value,
            shell=self.runner.shell,
        )

    def set_controller(
        self,
        controller: "AgentController",
        task_handler: Optional[Callable[[str, str], "TaskOutcome"]] = None,
    ) -> None:
        """Attach the agent loop used in AI mode.

        Args:
            controller: Agent controller (its history is cleared by
                `nob clear-history`)
            task_handler: Synchronous (request, cwd) -> TaskOutcome runner;
                defaults to running the controller on a fresh event loop
        """
        from nob.agent.factory import create_task_handler

        self._controller = controller
        self._task_handler = task_handler or create_task_handler(controller)

    def _on_cwd_change(self, cwd: str) -> None:
        self.completer.cwd = cwd

    def _print(self, text: str, color: Optional[str] = None) -> None:
        if color and self.use_color:
            text = f"{color}{text}{Colors.RESET}"
        print(text, flush=True)

    def run(self) -> None:
        """Run the interactive REPL until the user exits."""
        self._running = True
        bind_context(session_id=self.session.session_id)
        self.logger.info("Starting nob session", cwd=self.session.cwd)

        print()
        self._print(self._prompt.render_welcome(self.session))
        self._print(self._prompt.render_key_status(self.config.llm.has_personal_key))
        print()

        try:
            while self._running:
                self._print(self._prompt.render_header(self.session))
                event = self.editor.read_line()
                if event.action == EditorAction.EXIT:
                    self._print("Goodbye! 👋", Colors.GRAY)
                    break
                self.process_input(event.text)
        finally:
            self._running = False
            self.logger.info("Session ended")

    def process_input(self, line: str) -> bool:
        """Route one submitted line.

        Args:
            line: Submitted text

        Returns:
            False once the session should end
        """
        classified = classify_input(line, self.session.ai_enabled)
        self.logger.debug(
            "Input classified",
            input_type=classified.input_type.name,
            content=classified.content[:50],
        )

        if classified.input_type == InputType.EMPTY:
            return True

        if classified.input_type == InputType.BUILTIN:
            keep_running = self._handle_builtin(classified)
            if not keep_running:
                self._running = False
            return keep_running

        try:
            if classified.input_type == InputType.AI_REQUEST and self._task_handler:
                self._handle_ai_request(classified.content)
            else:
                self._handle_shell_command(classified.content)
        except KeyboardInterrupt:
            print()
            self.logger.info("Interrupted", content=classified.content[:50])
        return True

    def _handle_builtin(self, classified: ClassifiedInput) -> bool:
        builtin = classified.builtin

        if builtin == Builtin.EXIT:
            self._print("Goodbye! 👋", Colors.GRAY)
            return False

        if builtin == Builtin.AI_ON:
            self.session.set_mode(Mode.ON)
            self._print("✓ AI mode activated", Colors.GREEN)
            if self._task_handler is None:
                self._print("No AI backend configured; input will run as shell commands.", Colors.GRAY)
        elif builtin == Builtin.AI_OFF:
            self.session.set_mode(Mode.OFF)
            self._print("✓ Manual shell mode activated with autosuggestion", Colors.YELLOW)
        elif builtin == Builtin.HELP:
            self._print(format_session_help(self.use_color))
        elif builtin == Builtin.VERSION:
            self._print(f"nob v{self.version}", Colors.BOLD + Colors.MAGENTA)
        elif builtin == Builtin.CLEAR:
            self.terminal.clear_screen()
            self.terminal.flush()
        elif builtin == Builtin.CLEAR_HISTORY:
            if self._controller is not None:
                self._controller.clear_history()
            self._print("✓ Conversation history cleared", Colors.GRAY)
        elif builtin == Builtin.SHOW_CONFIG:
            self._print(
                format_config_summary(self.config, self.credential_store.path, self.use_color)
            )
        return True

    def _handle_shell_command(self, command: str) -> None:
        result = asyncio.run(self.runner.run(command, self.session.cwd))
        self.completer.add_history(command)
        self.session.apply_cwd(result.new_cwd)
        if not result.success and result.error:
            self._print(f"✗ Error: {result.error}", Colors.RED)

    def _handle_ai_request(self, request: str) -> None:
        outcome = self._task_handler(request, self.session.cwd)
        self.session.apply_cwd(outcome.cwd)
        self.logger.debug("AI request handled", state=outcome.state.value)
