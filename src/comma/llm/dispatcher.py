"""
Provider dispatch: backend selection, rate limiting, retries and local fallback.

    SELECT -> RATE_LIMIT_WAIT -> ATTEMPT(1..3) -> SUCCESS | EXHAUSTED
    EXHAUSTED -> (local fallback enabled -> ATTEMPT_LOCAL -> SUCCESS | FAIL) : FAIL
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from ..config import LOCAL_PROVIDER, ProviderSpec, SecretStore, Settings, resolve_api_key
from ..errors import ConfigurationError, PromptError, ProviderError, TransientProviderError
from ..utils.retry import RetryConfig, retry_async
from .provider import (
    BackendFactory,
    GenerationBackend,
    backend_requires_api_key,
    create_backend,
)
from .rate_limiter import RateLimiterRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass
class ProviderResponse:
    """Text produced by a provider call"""
    text: str
    provider: str
    attempts: int = 1
    fallback_used: bool = False


ApiKeyLookup = Callable[[str], Optional[str]]


class ProviderDispatcher:
    """
    Sends prompts to the configured provider.

    Each call waits on the provider's token bucket, then makes up to
    retry_config.max_attempts attempts. Only TransientProviderError is
    retried. When a local fallback spec is configured and a remote provider
    exhausts its attempts, one attempt is made against the local backend.

    Example:
        dispatcher = ProviderDispatcher.from_settings(settings)
        try:
            response = await dispatcher.generate(settings.provider, prompt)
        finally:
            await dispatcher.close()
    """

    def __init__(
        self,
        api_key_lookup: Optional[ApiKeyLookup] = None,
        local_fallback: Optional[ProviderSpec] = None,
        retry_config: RetryConfig = RetryConfig(),
        rate_limiters: Optional[RateLimiterRegistry] = None,
        backend_factory: BackendFactory = create_backend,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rate_limit_timeout: Optional[float] = None
    ):
        """
        Args:
            api_key_lookup: Returns the API key for a provider name
            local_fallback: Spec of the local backend to fall back to, or None
            retry_config: Attempt count and backoff
            rate_limiters: Bucket registry owned by this dispatcher. When omitted
                the process-wide registry is shared and close() leaves it intact.
            backend_factory: Builds a backend from a ProviderSpec and API key
            sleep: Awaitable used for backoff and rate-limit waits
            rate_limit_timeout: Maximum rate-limit wait per call
        """
        self.api_key_lookup = api_key_lookup or (lambda provider: None)
        self.local_fallback = local_fallback
        self.retry_config = retry_config
        self._owns_rate_limiters = rate_limiters is not None
        self.rate_limiters = rate_limiters if rate_limiters is not None else default_registry()
        self.backend_factory = backend_factory
        self.rate_limit_timeout = rate_limit_timeout
        self._sleep = sleep

        self._backends: Dict[ProviderSpec, GenerationBackend] = {}
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        secret_store: Optional[SecretStore] = None,
        **kwargs
    ) -> "ProviderDispatcher":
        """Build a dispatcher wired to the settings' key lookup and fallback."""
        return cls(
            api_key_lookup=lambda provider: resolve_api_key(provider, settings, secret_store),
            local_fallback=settings.local_provider if settings.use_local_fallback else None,
            rate_limit_timeout=settings.rate_limit_timeout,
            **kwargs
        )

    def _backend_for(self, spec: ProviderSpec) -> GenerationBackend:
        """
        Get or create the backend for a spec.

        Raises:
            UnsupportedProviderError: If the provider is not registered
            ConfigurationError: If a required API key is missing
        """
        backend = self._backends.get(spec)
        if backend is not None:
            return backend

        api_key = None
        if backend_requires_api_key(spec.name):
            api_key = self.api_key_lookup(spec.name)
            if not api_key:
                raise ConfigurationError(
                    f"API key not found for {spec.name} provider "
                    f"(set {spec.name.upper()}_API_KEY or COMMA_API_KEY)"
                )

        backend = self.backend_factory(spec, api_key)
        self._backends[spec] = backend
        return backend

    async def _wait_for_rate_limit(self, spec: ProviderSpec) -> None:
        bucket = self.rate_limiters.get(spec.name, spec.rate_limit)
        waited = await bucket.acquire(timeout=self.rate_limit_timeout, sleep=self._sleep)
        if waited:
            logger.info(f"Waited {waited:.2f}s for {spec.name} rate limit")

    def _can_fall_back(self, spec: ProviderSpec) -> bool:
        return self.local_fallback is not None and spec.name != LOCAL_PROVIDER

    async def generate(
        self,
        spec: ProviderSpec,
        prompt: str,
        max_tokens: Optional[int] = None
    ) -> ProviderResponse:
        """
        Generate text for a prompt.

        Args:
            spec: Provider to call
            prompt: Rendered prompt
            max_tokens: Override for spec.max_tokens

        Returns:
            ProviderResponse

        Raises:
            PromptError: If the prompt is empty
            UnsupportedProviderError: If the provider is not registered
            ConfigurationError: If a required API key is missing
            RateLimitTimeoutError: If the rate-limit wait exceeds the timeout
            TransientProviderError: If all attempts (and the fallback) failed
        """
        if self._closed:
            raise ProviderError("Dispatcher is closed", provider=spec.name)
        if not prompt or not prompt.strip():
            raise PromptError("Prompt is empty", provider=spec.name)

        max_tokens = max_tokens or spec.max_tokens
        backend = self._backend_for(spec)
        await self._wait_for_rate_limit(spec)

        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return await backend.generate(prompt, max_tokens)

        try:
            text = await retry_async(
                attempt,
                self.retry_config,
                sleep=self._sleep,
                description=f"{spec.name} generation",
            )
            return ProviderResponse(text=text, provider=spec.name, attempts=attempts)

        except TransientProviderError as e:
            if not self._can_fall_back(spec):
                raise

            fallback = self.local_fallback
            logger.warning(
                f"{spec.name} failed after {attempts} attempts, "
                f"falling back to local model {fallback.model}: {e}"
            )

            local_backend = self._backend_for(fallback)
            await self._wait_for_rate_limit(fallback)
            text = await local_backend.generate(prompt, max_tokens)

            return ProviderResponse(
                text=text,
                provider=fallback.name,
                attempts=attempts + 1,
                fallback_used=True,
            )

    async def close(self) -> None:
        """Close backend clients and drop owned limiter state. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        backends = list(self._backends.values())
        self._backends.clear()
        for backend in backends:
            try:
                await backend.close()
            except Exception as e:
                logger.warning(f"Error closing {backend.name} backend: {e}")

        if self._owns_rate_limiters:
            self.rate_limiters.close()

    async def __aenter__(self) -> "ProviderDispatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
