"""
Error handling and formatting for comma.
"""

from .exceptions import (
    CommaError,
    ConfigurationError,
    UnsupportedProviderError,
    ProviderError,
    TransientProviderError,
    PromptError,
    RateLimitTimeoutError,
    GenerationTimeoutError,
    CacheError,
    VersionControlError,
    NoChangesError,
    CommitExecutionError,
    TeamConfigError,
)
from .formatter import ErrorFormatter, format_error_for_user
from .categories import ErrorCategory, categorize_error

__all__ = [
    "CommaError",
    "ConfigurationError",
    "UnsupportedProviderError",
    "ProviderError",
    "TransientProviderError",
    "PromptError",
    "RateLimitTimeoutError",
    "GenerationTimeoutError",
    "CacheError",
    "VersionControlError",
    "NoChangesError",
    "CommitExecutionError",
    "TeamConfigError",
    "ErrorFormatter",
    "format_error_for_user",
    "ErrorCategory",
    "categorize_error",
]
