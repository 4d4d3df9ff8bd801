"""Agent Factory - Builds the text service and controller from configuration."""

import asyncio
import getpass
from typing import Callable, Optional

from nob.agent.controller import AgentController, AgentState, AgentUI, TaskOutcome
from nob.agent.llm_client import TextGenerationService
from nob.agent.providers.proxy import BackendProxyClient
from nob.agent.providers.workers_ai import WorkersAIClient
from nob.config.schemas import NobConfig
from nob.shell.executor import CommandRunner
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


def _default_user_id() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "anonymous"


def create_text_service(config: NobConfig) -> TextGenerationService:
    """Create the text generation client for the configuration.

    Personal Workers AI credentials win over the shared backend.

    Args:
        config: nob configuration

    Returns:
        Configured client

    Raises:
        ValueError: If neither credentials nor a backend endpoint are set
    """
    llm = config.llm
    if llm.has_personal_key:
        logger.info("Using personal Workers AI credentials")
        return WorkersAIClient(
            account_id=llm.cloudflare_account_id,
            api_token=llm.cloudflare_api_token,
            model=llm.model,
            timeout=llm.timeout_seconds,
        )

    if not llm.api_endpoint:
        raise ValueError(
            "No text generation backend configured. "
            "Run 'nob set-api-key' or set llm.api_endpoint."
        )

    return BackendProxyClient(
        endpoint=llm.api_endpoint,
        user_id=llm.user_id or _default_user_id(),
        model=llm.model,
        timeout=llm.timeout_seconds,
    )


def create_controller(
    config: NobConfig,
    ui: AgentUI,
    runner: Optional[CommandRunner] = None,
    service: Optional[TextGenerationService] = None,
    on_cwd_change: Optional[Callable[[str], None]] = None,
) -> AgentController:
    """Create a fully configured agent controller.

    Args:
        config: nob configuration
        ui: Display and approval surface
        runner: Command runner (one is created from config if omitted)
        service: Text service (one is created from config if omitted)
        on_cwd_change: Called with the new directory after a `cd`

    Returns:
        Configured AgentController
    """
    if runner is None:
        runner = CommandRunner(
            shell=config.shell.backend,
            output_limit=config.agent.output_limit,
        )

    return AgentController(
        service=service or create_text_service(config),
        runner=runner,
        ui=ui,
        config=config.agent,
        timeout=config.llm.timeout_seconds,
        shell=runner.shell,
        on_cwd_change=on_cwd_change,
    )


def create_task_handler(controller: AgentController) -> Callable[[str, str], TaskOutcome]:
    """Create a synchronous task handler for the shell wrapper.

    Each call runs one task on a fresh event loop, so the handler can be
    used from the blocking REPL.

    Args:
        controller: Controller that runs the tasks

    Returns:
        Handler taking (request, cwd) and returning the TaskOutcome
    """

    def handler(request: str, cwd: str) -> TaskOutcome:
        try:
            return asyncio.run(controller.run(request, cwd))
        except KeyboardInterrupt:
            logger.info("Task interrupted")
            return TaskOutcome(state=AgentState.SKIPPED, message="Interrupted", cwd=cwd)

    return handler
