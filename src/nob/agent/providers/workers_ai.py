"""Workers AI Provider - Direct calls with the user's own credentials."""

from typing import Any, Optional

import httpx

from nob.agent.llm_client import (
    Message,
    ModelCallError,
    RateLimitError,
    TextGenerationService,
    extract_text,
)
from nob.config.defaults import DEFAULT_MODEL, WORKERS_AI_URL
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


class WorkersAIClient(TextGenerationService):
    """Cloudflare Workers AI client for "bring your own key" usage.

    Example:
        client = WorkersAIClient(account_id="...", api_token="...")
        text = await client.generate([Message.user("Hello!")])
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the Workers AI client.

        Args:
            account_id: Cloudflare account id
            api_token: Cloudflare API token with Workers AI access
            model: Model identifier
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not account_id or not api_token:
            raise ValueError("Workers AI needs both an account id and an API token")

        self._account_id = account_id
        self._api_token = api_token
        self._model = model
        self._timeout = timeout
        self._transport = transport

        logger.info("Workers AI client initialized", model=model)

    @property
    def provider(self) -> str:
        """Get the provider name."""
        return "workers-ai"

    @property
    def model(self) -> str:
        """Get the model identifier."""
        return self._model

    @property
    def url(self) -> str:
        """Inference URL for the configured account and model."""
        return WORKERS_AI_URL.format(account_id=self._account_id, model=self._model)

    async def generate(self, messages: list[Message]) -> str:
        """Run the model on the conversation and return its reply text."""
        payload: dict[str, Any] = {"messages": [m.to_dict() for m in messages]}
        headers = {"Authorization": f"Bearer {self._api_token}"}

        logger.debug(
            "Invoking Workers AI",
            model=self._model,
            message_count=len(messages),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("Workers AI timeout", error=str(e))
            raise ModelCallError(f"Request timed out after {self._timeout:g} seconds") from e
        except httpx.HTTPError as e:
            logger.error("Workers AI transport error", error=str(e))
            raise ModelCallError(f"Workers AI error: {e}") from e

        if response.status_code == 429:
            raise RateLimitError(
                "Workers AI rate limit exceeded",
                hint="Your Cloudflare account has hit its Workers AI limit; try again later.",
            )

        if response.is_error:
            logger.error("Workers AI error status", status=response.status_code)
            raise ModelCallError(
                f"Workers AI error: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModelCallError("Workers AI returned a non-JSON body") from e

        if isinstance(data, dict) and data.get("success") is False:
            errors = data.get("errors") or []
            detail = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise ModelCallError(f"Workers AI error: {detail or 'request failed'}")

        return extract_text(data)
