"""LLM Client Abstraction - Unified interface for text generation backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


class ModelCallError(Exception):
    """A model call failed (transport error, timeout, non-2xx, error payload).

    Model call failures end the current task; they are never retried.
    """


class RateLimitError(ModelCallError):
    """The backend refused the call because a usage limit was reached.

    Attributes:
        hint: Human-readable remediation (how to use personal credentials)
    """

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message}\n\n{self.hint}"
        return message


class MessageRole(Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A message sent to the text generation service.

    Attributes:
        role: The role of the message sender
        content: The text content of the message
    """

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the role/content wire shape."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content)


class TextGenerationService(ABC):
    """Abstract base class for text generation backends.

    A backend takes an ordered list of role-tagged messages and returns the
    model's reply as plain text. Anything model specific stays inside the
    implementation.

    Example:
        client = BackendProxyClient(endpoint="https://...", user_id="me")
        text = await client.generate([Message.user("list files")])
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """Get the provider name (e.g., 'proxy', 'workers-ai')."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the model identifier."""
        ...

    @abstractmethod
    async def generate(self, messages: list[Message]) -> str:
        """Generate a reply for the conversation.

        Args:
            messages: System prompt followed by the conversation window

        Returns:
            The reply text (may be empty)

        Raises:
            RateLimitError: If the backend reports a usage limit
            ModelCallError: On any other failure
        """
        ...


def extract_text(data: Any) -> str:
    """Pull the reply text out of one of several response shapes.

    Checks, in order: a plain string, ``text``/``response`` keys, a nested
    ``result`` object, ``content`` arrays of ``{"type": "text"}`` items,
    ``steps``, ``resolvedOutput``, OpenAI style ``choices`` and ``toolResults``.

    Args:
        data: Decoded JSON body (or sub-object)

    Returns:
        The stripped text, or "" if nothing usable was found
    """
    if isinstance(data, str):
        return data.strip()
    if not isinstance(data, dict):
        return ""

    for key in ("text", "response"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, dict):
            nested = extract_text(value)
            if nested:
                return nested

    result = data.get("result")
    if result is not None:
        nested = extract_text(result)
        if nested:
            return nested

    content = _text_from_content(data.get("content"))
    if content:
        return content

    steps = data.get("steps")
    if isinstance(steps, list):
        for step in steps:
            nested = extract_text(step)
            if nested:
                return nested

    resolved = data.get("resolvedOutput")
    if resolved is not None:
        nested = extract_text(resolved)
        if nested:
            return nested

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if isinstance(first, dict):
            message = first.get("message") or {}
            if isinstance(message, dict):
                value = message.get("content")
                if isinstance(value, str) and value.strip():
                    return value.strip()

    tool_results = data.get("toolResults")
    if isinstance(tool_results, list):
        for item in tool_results:
            if isinstance(item, dict):
                nested = extract_text(item.get("result"))
                if nested:
                    return nested

    return ""


def _text_from_content(content: Optional[Any]) -> str:
    if not isinstance(content, list):
        return ""
    for item in content:
        if isinstance(item, dict) and item.get("type") == "text":
            text = item.get("text")
            if isinstance(text, str) and text.strip():
                return text.strip()
    return ""
