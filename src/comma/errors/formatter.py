"""
Error message formatting for console output and logs.
"""

from typing import List

from .categories import ErrorCategory, categorize_error


class ErrorFormatter:
    """
    Formats errors into user-friendly messages.
    """

    # Suggestions for each error category
    SUGGESTIONS = {
        ErrorCategory.CONFIGURATION: [
            "Check COMMA_PROVIDER and COMMA_MODEL in your environment or .env file",
            "Set the provider API key (e.g. OPENAI_API_KEY or COMMA_API_KEY)",
        ],
        ErrorCategory.AUTH: [
            "Verify your API key is valid and not expired",
        ],
        ErrorCategory.TIMEOUT: [
            "Increase COMMA_REQUEST_TIMEOUT",
            "Check if the model or API service is responding",
        ],
        ErrorCategory.NETWORK: [
            "Check your internet connection",
            "Verify the configured endpoint is reachable",
        ],
        ErrorCategory.API: [
            "Check the provider status page for outages",
            "Enable COMMA_USE_LOCAL_FALLBACK to fall back to a local model",
        ],
        ErrorCategory.GIT: [
            "Run the command inside a git repository with staged changes",
        ],
        ErrorCategory.INTERNAL: [
            "Run again with LOG_LEVEL=DEBUG for more details",
        ],
    }

    # Emojis for each category
    EMOJIS = {
        ErrorCategory.CONFIGURATION: "⚙️",
        ErrorCategory.AUTH: "🔒",
        ErrorCategory.TIMEOUT: "⏱️",
        ErrorCategory.NETWORK: "🌐",
        ErrorCategory.API: "🔌",
        ErrorCategory.GIT: "🌿",
        ErrorCategory.INTERNAL: "⚠️",
    }

    @staticmethod
    def format_error_concise(error: Exception) -> str:
        """
        Format an error concisely for logs or inline display.

        Args:
            error: The exception to format

        Returns:
            Concise error string
        """
        category, explanation = categorize_error(error)
        emoji = ErrorFormatter.EMOJIS.get(category, "❌")

        return f"{emoji} {category.value.upper()}: {explanation} - {str(error)[:100]}"

    @staticmethod
    def format_error_detailed(error: Exception) -> str:
        """Format an error with remediation suggestions for the console."""
        category, _ = categorize_error(error)
        lines: List[str] = [ErrorFormatter.format_error_concise(error)]

        suggestions = ErrorFormatter.SUGGESTIONS.get(category, [])
        if suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)


def format_error_for_user(error: Exception, detailed: bool = False) -> str:
    """
    Convenience function to format an error for display to users.

    Args:
        error: The exception to format
        detailed: Include remediation suggestions

    Returns:
        Formatted error message
    """
    if detailed:
        return ErrorFormatter.format_error_detailed(error)
    return ErrorFormatter.format_error_concise(error)
