"""
Exception hierarchy for comma.

Only a few of these ever escape the generation pipeline: configuration
problems, unsupported providers, exhausted provider retries, timeouts and
commit failures. Everything else is downgraded by the component that raises it.
"""

from typing import Optional


class CommaError(Exception):
    """Base class for all comma errors"""
    pass


class ConfigurationError(CommaError):
    """Missing or invalid configuration (provider, API key, settings value)"""
    pass


class UnsupportedProviderError(CommaError):
    """Provider name does not map to any registered backend"""

    def __init__(self, provider: str, supported: Optional[list] = None):
        self.provider = provider
        self.supported = sorted(supported or [])
        message = f"Unsupported provider: {provider}"
        if self.supported:
            message += f". Supported: {', '.join(self.supported)}"
        super().__init__(message)


class ProviderError(CommaError):
    """Base class for failures reported by a generation backend"""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class TransientProviderError(ProviderError):
    """
    Remote API failure worth retrying.

    Raised for non-success HTTP statuses, transport errors, undecodable bodies
    and application-level error envelopes.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        self.status_code = status_code
        super().__init__(message, provider=provider)


class PromptError(ProviderError):
    """The request itself is unusable (e.g. empty prompt); never retried"""
    pass


class RateLimitTimeoutError(CommaError, TimeoutError):
    """A rate-limit wait would exceed the caller's timeout"""

    def __init__(self, provider: str, wait_seconds: float, timeout: float):
        self.provider = provider
        self.wait_seconds = wait_seconds
        self.timeout = timeout
        super().__init__(
            f"Rate limit for {provider} requires waiting {wait_seconds:.2f}s "
            f"(timeout {timeout:.2f}s)"
        )


class GenerationTimeoutError(CommaError, TimeoutError):
    """The generation pipeline was aborted by its timeout"""
    pass


class CacheError(CommaError):
    """Cache read/write failure. Never fatal; converted to a miss or no-op."""
    pass


class VersionControlError(CommaError):
    """The version control collaborator failed"""
    pass


class NoChangesError(VersionControlError):
    """There are no changes to describe"""
    pass


class CommitExecutionError(VersionControlError):
    """Creating the commit failed"""
    pass


class TeamConfigError(CommaError):
    """Team configuration could not be found or parsed"""
    pass
