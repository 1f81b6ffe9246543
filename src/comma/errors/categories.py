"""
Error categorization for user-friendly error messages.
"""

from enum import Enum
from typing import Tuple

from .exceptions import (
    CommitExecutionError,
    ConfigurationError,
    NoChangesError,
    PromptError,
    TransientProviderError,
    UnsupportedProviderError,
    VersionControlError,
)


class ErrorCategory(Enum):
    """Categories of errors that can occur in comma"""
    CONFIGURATION = "configuration"
    API = "api"
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTH = "authentication"
    GIT = "git"
    INTERNAL = "internal"


def categorize_error(error: Exception) -> Tuple[ErrorCategory, str]:
    """
    Categorize an error and provide a user-friendly explanation.

    Typed errors are matched first; anything else falls back to keyword
    matching on the message.

    Args:
        error: The exception to categorize

    Returns:
        Tuple of (ErrorCategory, explanation)
    """
    if isinstance(error, (ConfigurationError, UnsupportedProviderError)):
        return (
            ErrorCategory.CONFIGURATION,
            "Configuration error - please check your provider and API key settings"
        )

    if isinstance(error, TimeoutError):
        return (
            ErrorCategory.TIMEOUT,
            "Operation timed out - the model or API took too long to respond"
        )

    if isinstance(error, NoChangesError):
        return (
            ErrorCategory.GIT,
            "No changes found - stage changes with 'git add' first"
        )

    if isinstance(error, CommitExecutionError):
        return (
            ErrorCategory.GIT,
            "Git could not create the commit"
        )

    if isinstance(error, VersionControlError):
        return (
            ErrorCategory.GIT,
            "Git repository error"
        )

    if isinstance(error, TransientProviderError) and error.status_code in (401, 403):
        return (
            ErrorCategory.AUTH,
            "Authentication failed - please check your API key"
        )

    if isinstance(error, TransientProviderError) and error.status_code == 429:
        return (
            ErrorCategory.API,
            "Rate limit exceeded - too many requests"
        )

    if isinstance(error, PromptError):
        return (
            ErrorCategory.API,
            "The request sent to the model was invalid"
        )

    error_str = str(error).lower()

    if "401" in error_str or "unauthorized" in error_str or "forbidden" in error_str:
        return (
            ErrorCategory.AUTH,
            "Authentication failed - please check your API key"
        )

    if any(keyword in error_str for keyword in ["connection", "network", "unreachable"]):
        return (
            ErrorCategory.NETWORK,
            "Network error - please check your internet connection"
        )

    if isinstance(error, TransientProviderError):
        return (
            ErrorCategory.API,
            "API error - the provider returned an error"
        )

    return (
        ErrorCategory.INTERNAL,
        "An unexpected error occurred"
    )
