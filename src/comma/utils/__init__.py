"""
Utility modules for comma.
"""

from .retry import retry_async, RetryConfig, calculate_delay, is_retryable_error

__all__ = ["retry_async", "RetryConfig", "calculate_delay", "is_retryable_error"]
