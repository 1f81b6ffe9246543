"""
Anthropic messages API backend.
"""

import logging
from typing import Any, Optional

import anthropic
import httpx

from ..config import ProviderSpec
from ..errors import TransientProviderError
from .provider import BaseBackend, register_backend

logger = logging.getLogger(__name__)


def extract_message_text(response: Any, provider: str = "anthropic") -> str:
    """
    Extract the first text block from a messages API response.

    Raises:
        TransientProviderError: For error envelopes or responses without text
    """
    error = getattr(response, "error", None)
    if error:
        message = error.get("message") if isinstance(error, dict) else getattr(error, "message", error)
        raise TransientProviderError(f"API error: {message}", provider=provider)

    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text

    raise TransientProviderError("No text content in API response", provider=provider)


@register_backend("anthropic")
class AnthropicBackend(BaseBackend):
    """
    Backend for Anthropic's Claude models.

    Retries are handled by the dispatcher, so the SDK client is created with
    max_retries=0.
    """

    def __init__(
        self,
        spec: ProviderSpec,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(spec, api_key)

        # Initialize client
        self.client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            base_url=spec.endpoint,
            timeout=spec.timeout,
            max_retries=0,
            http_client=http_client,
        )

        logger.info(f"Anthropic backend initialized with model: {spec.model}")

    async def generate(self, prompt: str, max_tokens: int) -> str:
        logger.debug(f"Creating message with max_tokens={max_tokens}")

        try:
            response = await self.client.messages.create(
                model=self.spec.model,
                max_tokens=max_tokens,
                temperature=self.spec.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            raise TransientProviderError(
                f"API returned non-200 status: {e.status_code}, body: {e.message}",
                provider=self.name,
                status_code=e.status_code,
            ) from e
        except anthropic.APIError as e:
            # Connection failures, timeouts and undecodable bodies
            raise TransientProviderError(f"Request failed: {e}", provider=self.name) from e

        # Log response details
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"Response received: input_tokens={usage.input_tokens}, "
                f"output_tokens={usage.output_tokens}"
            )

        return extract_message_text(response, self.name)

    async def close(self) -> None:
        await self.client.close()
