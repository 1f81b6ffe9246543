"""
Retry utility with exponential backoff for handling transient failures.

The defaults match the provider contract: three attempts in total with
0.5s and 1s pauses in between.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior"""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = False


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if an error should be retried.

    Only transient provider failures (HTTP errors, transport errors, error
    envelopes in the body) are retried. Configuration problems and invalid
    requests fail immediately.
    """
    return isinstance(error, TransientProviderError)


def calculate_delay(
    attempt: int,
    base_delay: float,
    exponential_base: float,
    max_delay: float,
    jitter: bool
) -> float:
    """
    Calculate delay for retry attempt with exponential backoff.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        exponential_base: Base for exponential backoff
        max_delay: Maximum delay in seconds
        jitter: Whether to add random jitter

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    # Add jitter to prevent thundering herd
    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)

    return delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig = RetryConfig(),
    is_retryable: Callable[[Exception], bool] = is_retryable_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: Optional[str] = None,
) -> T:
    """
    Run an async operation, retrying retryable failures with backoff.

    Example:
        text = await retry_async(lambda: backend.generate(prompt, 500))

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        config: Retry configuration
        is_retryable: Predicate deciding whether an error is retried
        sleep: Awaitable used for the backoff pause
        description: Name used in log messages

    Returns:
        The operation's result

    Raises:
        The last error once attempts are exhausted, or the first
        non-retryable error.
    """
    name = description or getattr(operation, "__name__", "operation")
    attempts = max(1, config.max_attempts)

    for attempt in range(attempts):
        try:
            result = await operation()

            if attempt > 0:
                logger.info(f"{name} succeeded on attempt {attempt + 1}")

            return result

        except Exception as e:
            if not is_retryable(e):
                logger.debug(f"{name} failed with non-retryable error: {e}")
                raise

            if attempt >= attempts - 1:
                logger.error(f"{name} failed after {attempts} attempts: {e}")
                raise

            delay = calculate_delay(
                attempt,
                config.base_delay,
                config.exponential_base,
                config.max_delay,
                config.jitter
            )

            logger.warning(
                f"{name} failed on attempt {attempt + 1}/{attempts}, "
                f"retrying in {delay:.2f}s: {e}"
            )

            await sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
