"""
Local inference server backend (Ollama generate API).
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import LOCAL_PROVIDER, ProviderSpec
from ..errors import TransientProviderError
from .provider import ERROR_BODY_LIMIT, BaseBackend, register_backend

logger = logging.getLogger(__name__)


def parse_local_response(data: Any, provider: str = LOCAL_PROVIDER) -> str:
    """
    Extract generated text from a local server body.

    Success: {"response": "..."}
    Failure: {"error": "..."}

    Raises:
        TransientProviderError: For error envelopes and unexpected shapes
    """
    if not isinstance(data, dict):
        raise TransientProviderError("Unexpected response body", provider=provider)

    error = data.get("error")
    if error:
        raise TransientProviderError(f"API error: {error}", provider=provider)

    text = data.get("response")
    if not isinstance(text, str):
        raise TransientProviderError("No response field in API response", provider=provider)
    return text


@register_backend(LOCAL_PROVIDER)
class OllamaBackend(BaseBackend):
    """
    Backend for a local Ollama-compatible server.

    No API key is needed; the endpoint is the full URL of the generate
    resource (http://localhost:11434/api/generate by default).
    """

    requires_api_key = False

    def __init__(
        self,
        spec: ProviderSpec,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(spec, api_key)

        if client is None:
            # Local inference can be slow to produce the first byte
            timeout_config = httpx.Timeout(
                connect=10.0,
                read=spec.timeout,
                write=30.0,
                pool=10.0
            )
            client = httpx.AsyncClient(timeout=timeout_config)

        self.client = client
        logger.info(f"Local backend initialized with model {spec.model} at {spec.endpoint}")

    def _build_request(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        return {
            "model": self.spec.model,
            "prompt": prompt,
            "temperature": self.spec.temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }

    async def generate(self, prompt: str, max_tokens: int) -> str:
        try:
            response = await self.client.post(
                self.spec.endpoint,
                json=self._build_request(prompt, max_tokens),
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

        return parse_local_response(data, self.name)

    async def close(self) -> None:
        await self.client.aclose()
