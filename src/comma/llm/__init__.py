"""
LLM module - generation backends and provider dispatch.
"""

from .provider import (
    GenerationBackend,
    BaseBackend,
    register_backend,
    supported_providers,
    create_backend,
)
from .openai_backend import OpenAIBackend, parse_chat_completion
from .anthropic_backend import AnthropicBackend, extract_message_text
from .ollama_backend import OllamaBackend, parse_local_response
from .rate_limiter import TokenBucket, RateLimiterRegistry, default_registry
from .dispatcher import ProviderDispatcher, ProviderResponse

__all__ = [
    # Base classes
    "GenerationBackend",
    "BaseBackend",
    # Registry
    "register_backend",
    "supported_providers",
    "create_backend",
    # Backends
    "OpenAIBackend",
    "AnthropicBackend",
    "OllamaBackend",
    "parse_chat_completion",
    "extract_message_text",
    "parse_local_response",
    # Dispatch
    "TokenBucket",
    "RateLimiterRegistry",
    "default_registry",
    "ProviderDispatcher",
    "ProviderResponse",
]
