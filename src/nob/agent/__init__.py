"""Agent loop: text generation clients, reply interpretation and control."""

from nob.agent.controller import (
    AgentController,
    AgentState,
    AgentUI,
    ConversationTurn,
    TaskOutcome,
)
from nob.agent.factory import create_controller, create_task_handler, create_text_service
from nob.agent.interpreter import Action, Conversational, Done, Proposal, interpret
from nob.agent.llm_client import (
    Message,
    MessageRole,
    ModelCallError,
    RateLimitError,
    TextGenerationService,
)

__all__ = [
    "Action",
    "AgentController",
    "AgentState",
    "AgentUI",
    "Conversational",
    "ConversationTurn",
    "Done",
    "Message",
    "MessageRole",
    "ModelCallError",
    "Proposal",
    "RateLimitError",
    "TaskOutcome",
    "TextGenerationService",
    "create_controller",
    "create_task_handler",
    "create_text_service",
    "interpret",
]
