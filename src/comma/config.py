"""
Configuration for comma.

Settings are loaded once from environment variables (optionally from a .env
file) into an immutable snapshot that is passed explicitly to every component.
Apart from load_settings, only the <PROVIDER>_API_KEY fallback in
resolve_api_key reads the environment.
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from threading import Lock
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


LOCAL_PROVIDER = "local"

DEFAULT_PROVIDER = "openai"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 500
DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_CLASSIFICATION_THRESHOLD = 0.6
DEFAULT_CACHE_MAX_AGE_HOURS = 24.0

DEFAULT_ENDPOINTS = {
    "openai": "https://api.openai.com/v1/chat/completions",
    "anthropic": "https://api.anthropic.com",
    "local": "http://localhost:11434/api/generate",
}

DEFAULT_MODELS = {
    "openai": "gpt-4",
    "anthropic": "claude-3-opus-20240229",
    "local": "llama3",
}

DEFAULT_TEMPLATE = """Generate a concise and meaningful git commit message for the changes.
Follow the conventional commit format: <type>(<scope>): <subject>

Types: feat, fix, docs, style, refactor, test, chore

Rules:
1. First line should be a short summary (max 72 chars)
2. Use imperative, present tense (e.g., "add" not "added")
3. Don't end the summary line with a period
4. Optional body with more detailed explanation (after blank line)

Changes:
{{CHANGES}}"""


@dataclass(frozen=True)
class RateLimit:
    """Token bucket parameters for one provider"""
    requests_per_minute: int
    burst: int


# Provider-specific rate limits; unknown providers get "default"
DEFAULT_RATE_LIMITS: Dict[str, RateLimit] = {
    "openai": RateLimit(requests_per_minute=60, burst=5),
    "anthropic": RateLimit(requests_per_minute=40, burst=3),
    "mistral": RateLimit(requests_per_minute=100, burst=10),
    "local": RateLimit(requests_per_minute=200, burst=20),
    "default": RateLimit(requests_per_minute=30, burst=3),
}


@dataclass(frozen=True)
class ProviderSpec:
    """Everything the dispatcher needs to call one provider"""
    name: str
    endpoint: str
    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    rate_limit: RateLimit = DEFAULT_RATE_LIMITS["default"]
    timeout: float = DEFAULT_REQUEST_TIMEOUT


def build_provider_spec(
    name: str,
    model: Optional[str] = None,
    endpoint: Optional[str] = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    rate_limit: Optional[RateLimit] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> ProviderSpec:
    """
    Build a ProviderSpec, filling in per-provider defaults.

    Args:
        name: Provider name ("openai", "anthropic", "local", ...)
        model: Model id (defaults per provider)
        endpoint: API endpoint (defaults per provider)
        temperature: Sampling temperature
        max_tokens: Maximum tokens to generate
        rate_limit: Token bucket parameters (defaults per provider)
        timeout: Per-request timeout in seconds

    Returns:
        ProviderSpec
    """
    name = name.strip().lower()
    if not name:
        raise ConfigurationError("LLM provider is not set")

    return ProviderSpec(
        name=name,
        endpoint=endpoint or DEFAULT_ENDPOINTS.get(name, ""),
        model=model or DEFAULT_MODELS.get(name, ""),
        temperature=temperature,
        max_tokens=max_tokens,
        rate_limit=rate_limit or DEFAULT_RATE_LIMITS.get(name, DEFAULT_RATE_LIMITS["default"]),
        timeout=timeout,
    )


@dataclass(frozen=True)
class Settings:
    """Immutable configuration snapshot for one process"""
    provider: ProviderSpec
    local_provider: ProviderSpec
    api_key: Optional[str] = None
    use_local_fallback: bool = False
    template: str = DEFAULT_TEMPLATE
    smart_detection: bool = True
    classification_threshold: float = DEFAULT_CLASSIFICATION_THRESHOLD
    scan_for_sensitive_data: bool = True
    cache_enabled: bool = True
    cache_max_age_hours: float = DEFAULT_CACHE_MAX_AGE_HOURS
    audit_logging: bool = True
    team_enabled: bool = False
    team_name: str = ""
    config_dir: Path = field(default_factory=lambda: Path.home() / ".comma")
    rate_limit_timeout: Optional[float] = None

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_max_age_hours * 3600.0

    @property
    def cache_dir(self) -> Path:
        return self.config_dir / "cache"

    @property
    def teams_dir(self) -> Path:
        return self.config_dir / "teams"

    @property
    def audit_dir(self) -> Path:
        return self.config_dir / "audit"

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)


def default_settings(provider: str = DEFAULT_PROVIDER, **overrides) -> Settings:
    """Settings with built-in defaults for the given provider."""
    return Settings(
        provider=build_provider_spec(provider),
        local_provider=build_provider_spec(LOCAL_PROVIDER),
        **overrides
    )


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {raw!r}")


def _get_float(env: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid number for {key}: {raw!r}")


def _get_int(env: Mapping[str, str], key: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid integer for {key}: {raw!r}")


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None
) -> Settings:
    """
    Load settings from environment variables.

    When env is None, a .env file is loaded first (without overriding
    variables that are already set) and os.environ is used.

    Args:
        env: Mapping to read instead of os.environ
        dotenv_path: Explicit .env file location

    Returns:
        Settings snapshot

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    provider_name = env.get("COMMA_PROVIDER", DEFAULT_PROVIDER)
    default_limit = DEFAULT_RATE_LIMITS.get(
        provider_name.strip().lower(), DEFAULT_RATE_LIMITS["default"]
    )
    rate_limit = RateLimit(
        requests_per_minute=_get_int(env, "COMMA_REQUESTS_PER_MINUTE", default_limit.requests_per_minute),
        burst=_get_int(env, "COMMA_BURST", default_limit.burst),
    )
    temperature = _get_float(env, "COMMA_TEMPERATURE", DEFAULT_TEMPERATURE)
    max_tokens = _get_int(env, "COMMA_MAX_TOKENS", DEFAULT_MAX_TOKENS)
    timeout = _get_float(env, "COMMA_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)

    provider = build_provider_spec(
        provider_name,
        model=env.get("COMMA_MODEL") or None,
        endpoint=env.get("COMMA_ENDPOINT") or None,
        temperature=temperature,
        max_tokens=max_tokens,
        rate_limit=rate_limit,
        timeout=timeout,
    )
    local_provider = build_provider_spec(
        LOCAL_PROVIDER,
        model=env.get("COMMA_LOCAL_MODEL") or None,
        endpoint=env.get("COMMA_LOCAL_ENDPOINT") or None,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
    )

    config_dir = env.get("COMMA_CONFIG_DIR")
    settings = Settings(
        provider=provider,
        local_provider=local_provider,
        api_key=env.get("COMMA_API_KEY") or None,
        use_local_fallback=_get_bool(env, "COMMA_USE_LOCAL_FALLBACK", False),
        template=env.get("COMMA_TEMPLATE") or DEFAULT_TEMPLATE,
        smart_detection=_get_bool(env, "COMMA_SMART_DETECTION", True),
        classification_threshold=_get_float(
            env, "COMMA_CLASSIFICATION_THRESHOLD", DEFAULT_CLASSIFICATION_THRESHOLD
        ),
        scan_for_sensitive_data=_get_bool(env, "COMMA_SCAN_SECRETS", True),
        cache_enabled=_get_bool(env, "COMMA_CACHE_ENABLED", True),
        cache_max_age_hours=_get_float(env, "COMMA_CACHE_MAX_AGE_HOURS", DEFAULT_CACHE_MAX_AGE_HOURS),
        audit_logging=_get_bool(env, "COMMA_AUDIT_LOGGING", True),
        team_enabled=_get_bool(env, "COMMA_TEAM_ENABLED", False),
        team_name=env.get("COMMA_TEAM_NAME", ""),
        config_dir=Path(config_dir).expanduser() if config_dir else Path.home() / ".comma",
        rate_limit_timeout=_get_float(env, "COMMA_RATE_LIMIT_TIMEOUT", None),
    )

    logger.debug(
        f"Settings loaded: provider={provider.name}, model={provider.model}, "
        f"fallback={settings.use_local_fallback}, team={settings.team_enabled}"
    )
    return settings


class SecretStore(ABC):
    """Durable storage of API tokens keyed by provider name"""

    @abstractmethod
    def retrieve(self, provider: str) -> Optional[str]:
        """Return the stored token, or None"""
        pass

    @abstractmethod
    def store(self, provider: str, token: str) -> None:
        """Persist a token for a provider"""
        pass


class InMemorySecretStore(SecretStore):
    """Process-lifetime secret store"""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._tokens: Dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def retrieve(self, provider: str) -> Optional[str]:
        with self._lock:
            return self._tokens.get(provider)

    def store(self, provider: str, token: str) -> None:
        with self._lock:
            self._tokens[provider] = token


def provider_env_var(provider: str) -> str:
    """Environment variable holding a provider's API key (e.g. OPENAI_API_KEY)"""
    return f"{provider.upper()}_API_KEY"


def resolve_api_key(
    provider: str,
    settings: Settings,
    secret_store: Optional[SecretStore] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Find the API key for a provider.

    Lookup order: secret store, configured key, <PROVIDER>_API_KEY environment
    variable. A key found outside the store is saved into it.

    Returns:
        The key, or None when no source has one
    """
    if secret_store is not None:
        try:
            token = secret_store.retrieve(provider)
        except Exception as e:
            logger.warning(f"Secret store lookup failed for {provider}: {e}")
            token = None
        if token:
            return token

    env = os.environ if env is None else env
    token = settings.api_key if provider == settings.provider.name else None
    token = token or env.get(provider_env_var(provider)) or None

    if token and secret_store is not None:
        try:
            secret_store.store(provider, token)
        except Exception as e:
            logger.warning(f"Could not save API key for {provider} to secret store: {e}")

    return token
