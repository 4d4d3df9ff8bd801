"""Shared Backend Provider - Text generation through the rate-limited proxy."""

from typing import Any, Optional

import httpx

from nob.agent.llm_client import (
    Message,
    ModelCallError,
    RateLimitError,
    TextGenerationService,
    extract_text,
)
from nob.config.defaults import DEFAULT_MODEL, RATE_LIMIT_HINT
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


class BackendProxyClient(TextGenerationService):
    """Client for the shared nob backend.

    The backend holds the inference credentials and enforces a per-user
    daily quota, so every request carries an opaque user id. A 429 answer
    becomes a RateLimitError that tells the user how to bring their own key.

    Example:
        client = BackendProxyClient(
            endpoint="https://nob-proxy.example.workers.dev",
            user_id="alice",
        )
        text = await client.generate([Message.user("Hello!")])
    """

    def __init__(
        self,
        endpoint: str,
        user_id: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the proxy client.

        Args:
            endpoint: Backend URL that accepts the chat payload
            user_id: Identifier used by the backend for rate limiting
            model: Model identifier forwarded to the backend
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._endpoint = endpoint
        self._user_id = user_id
        self._model = model
        self._timeout = timeout
        self._transport = transport

        logger.info("Backend proxy client initialized", endpoint=endpoint, model=model)

    @property
    def provider(self) -> str:
        """Get the provider name."""
        return "proxy"

    @property
    def model(self) -> str:
        """Get the model identifier."""
        return self._model

    async def generate(self, messages: list[Message]) -> str:
        """Send the conversation to the backend and return its reply text."""
        payload: dict[str, Any] = {
            "messages": [m.to_dict() for m in messages],
            "model": self._model,
            "userId": self._user_id,
        }

        logger.debug(
            "Invoking backend proxy",
            model=self._model,
            message_count=len(messages),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(self._endpoint, json=payload)
        except httpx.TimeoutException as e:
            logger.error("Backend proxy timeout", error=str(e))
            raise ModelCallError(f"Request timed out after {self._timeout:g} seconds") from e
        except httpx.HTTPError as e:
            logger.error("Backend proxy transport error", error=str(e))
            raise ModelCallError(f"Backend API error: {e}") from e

        if response.status_code == 429:
            message = _error_message(response) or "Rate limit exceeded"
            logger.warning("Backend proxy rate limited", user_id=self._user_id)
            raise RateLimitError(message, hint=RATE_LIMIT_HINT)

        if response.is_error:
            logger.error("Backend proxy error status", status=response.status_code)
            raise ModelCallError(
                f"Backend API error: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModelCallError("Backend API returned a non-JSON body") from e

        if isinstance(data, dict) and data.get("error"):
            raise ModelCallError(str(data["error"]))

        return extract_text(data)


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None
