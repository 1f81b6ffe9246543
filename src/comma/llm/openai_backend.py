"""
OpenAI chat completion backend.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import ProviderSpec
from ..errors import TransientProviderError
from .provider import ERROR_BODY_LIMIT, SYSTEM_PROMPT, BaseBackend, register_backend

logger = logging.getLogger(__name__)


def parse_chat_completion(data: Any, provider: str = "openai") -> str:
    """
    Extract the message text from a chat completion body.

    Success: {"choices": [{"message": {"content": "..."}}]}
    Failure: {"error": {"message": "..."}}

    Raises:
        TransientProviderError: For error envelopes and unexpected shapes
    """
    if not isinstance(data, dict):
        raise TransientProviderError("Unexpected response body", provider=provider)

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise TransientProviderError(f"API error: {message}", provider=provider)

    choices = data.get("choices") or []
    if not choices:
        raise TransientProviderError("No response from API", provider=provider)

    try:
        content = choices[0]["message"]["content"]
    except (KeyError, TypeError, IndexError):
        raise TransientProviderError("Malformed choice in API response", provider=provider)

    if not isinstance(content, str):
        raise TransientProviderError("Empty message content in API response", provider=provider)
    return content


@register_backend("openai")
class OpenAIBackend(BaseBackend):
    """
    Backend for OpenAI-compatible chat completion endpoints.

    The endpoint is the full URL of the chat completions resource.
    """

    def __init__(
        self,
        spec: ProviderSpec,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(spec, api_key)
        self.client = client or httpx.AsyncClient(timeout=spec.timeout)
        logger.info(f"OpenAI backend initialized with model: {spec.model}")

    def _build_request(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        return {
            "model": self.spec.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": self.spec.temperature,
        }

    async def generate(self, prompt: str, max_tokens: int) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self.client.post(
                self.spec.endpoint,
                json=self._build_request(prompt, max_tokens),
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TransientProviderError(f"Request failed: {e}", provider=self.name) from e

        if response.status_code != 200:
            raise TransientProviderError(
                f"API returned non-200 status: {response.status_code}, "
                f"body: {response.text[:ERROR_BODY_LIMIT]}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransientProviderError(f"Failed to decode response: {e}", provider=self.name) from e

        return parse_chat_completion(data, self.name)

    async def close(self) -> None:
        await self.client.aclose()
