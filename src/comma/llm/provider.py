"""
Generation backend abstraction.

A backend turns a prompt into commit message text for one provider's wire
format. Backends are registered by provider name in a closed registry; adding
a provider means writing one class and decorating it with register_backend.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Type

from ..config import ProviderSpec
from ..errors import ConfigurationError, UnsupportedProviderError

logger = logging.getLogger(__name__)

# Prompt used as the system message by backends that support one
SYSTEM_PROMPT = (
    "You are a helpful assistant that generates clear, concise, "
    "and meaningful git commit messages."
)

# Characters of an error body kept in exception messages
ERROR_BODY_LIMIT = 500


class GenerationBackend(ABC):
    """
    Base interface for generation backends.

    generate() raises TransientProviderError for anything worth retrying
    (HTTP errors, transport errors, undecodable bodies, error envelopes).
    """

    name: str = ""
    requires_api_key: bool = True

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int) -> str:
        """
        Generate a commit message.

        Args:
            prompt: Fully rendered prompt
            max_tokens: Maximum tokens to generate

        Returns:
            Raw model output
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass


class BaseBackend(GenerationBackend):
    """
    Base implementation with common functionality.

    Subclasses implement provider-specific request and response handling.
    """

    def __init__(self, spec: ProviderSpec, api_key: Optional[str] = None):
        self.spec = spec
        self.api_key = api_key
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate backend configuration"""
        if not self.spec.model:
            raise ConfigurationError(f"No model configured for provider {self.spec.name}")
        if not self.spec.endpoint:
            raise ConfigurationError(f"No endpoint configured for provider {self.spec.name}")
        if self.requires_api_key and not self.api_key:
            raise ConfigurationError(
                f"API key not found for {self.spec.name} provider "
                f"(set {self.spec.name.upper()}_API_KEY or COMMA_API_KEY)"
            )


BackendFactory = Callable[[ProviderSpec, Optional[str]], GenerationBackend]

_BACKENDS: Dict[str, Type[BaseBackend]] = {}


def register_backend(name: str):
    """
    Class decorator registering a backend under a provider name.

    Example:
        @register_backend("openai")
        class OpenAIBackend(BaseBackend):
            ...
    """
    def decorator(cls: Type[BaseBackend]) -> Type[BaseBackend]:
        cls.name = name
        _BACKENDS[name] = cls
        return cls
    return decorator


def supported_providers() -> List[str]:
    """Names of all registered providers, sorted."""
    return sorted(_BACKENDS)


def get_backend_class(name: str) -> Type[BaseBackend]:
    """
    Look up a backend class.

    Raises:
        UnsupportedProviderError: If no backend is registered under name
    """
    try:
        return _BACKENDS[name]
    except KeyError:
        raise UnsupportedProviderError(name, supported_providers())


def backend_requires_api_key(name: str) -> bool:
    return get_backend_class(name).requires_api_key


def create_backend(spec: ProviderSpec, api_key: Optional[str] = None) -> GenerationBackend:
    """
    Factory function to create a backend for a provider spec.

    Raises:
        UnsupportedProviderError: If spec.name is not registered
        ConfigurationError: If the provider spec or API key is unusable
    """
    backend_cls = get_backend_class(spec.name)
    logger.debug(f"Creating {backend_cls.__name__} for model {spec.model}")
    return backend_cls(spec, api_key)
