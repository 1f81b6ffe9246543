"""
Per-provider token bucket rate limiting.

Buckets use reservation semantics: acquiring always takes a token, letting the
balance go negative, and the caller sleeps until its token would have been
available. Concurrent callers therefore queue up in arrival order without
polling. Bucket state is guarded by a threading lock so buckets can be shared
between event loops and threads.
"""

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Dict, Optional

from ..config import RateLimit
from ..errors import RateLimitTimeoutError

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket allowing `burst` immediate requests, refilled at
    requests_per_minute / 60 tokens per second.

    A non-positive requests_per_minute disables limiting.

    Example:
        bucket = TokenBucket(requests_per_minute=60, burst=5)
        await bucket.acquire(timeout=10.0)
    """

    def __init__(
        self,
        requests_per_minute: int,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
        name: str = ""
    ):
        self.requests_per_minute = requests_per_minute
        self.burst = max(1, burst)
        self.name = name
        self._clock = clock
        self._rate = requests_per_minute / 60.0 if requests_per_minute > 0 else 0.0

        self._lock = threading.Lock()
        self._tokens = float(self.burst)
        self._last_refill = clock()

    @property
    def unlimited(self) -> bool:
        return self.requests_per_minute <= 0

    @property
    def tokens(self) -> float:
        """Current balance (negative while reservations are outstanding)."""
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self) -> None:
        # Caller holds the lock
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self._rate)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        if self.unlimited:
            return True

        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def reserve(self) -> float:
        """
        Take a token unconditionally.

        Returns:
            Seconds to wait before the reserved token is usable (0 if now)
        """
        if self.unlimited:
            return 0.0

        with self._lock:
            self._refill()
            self._tokens -= 1.0
            if self._tokens >= 0.0:
                return 0.0
            return -self._tokens / self._rate

    def cancel_reservation(self) -> None:
        """Give back a token taken by reserve()."""
        if self.unlimited:
            return

        with self._lock:
            self._refill()
            self._tokens = min(float(self.burst), self._tokens + 1.0)

    async def acquire(
        self,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> float:
        """
        Wait for a token.

        Args:
            timeout: Maximum seconds to wait; None waits as long as needed
            sleep: Awaitable used for the wait

        Returns:
            Seconds waited

        Raises:
            RateLimitTimeoutError: If the wait would exceed timeout. The
                reservation is returned first.
            asyncio.CancelledError: If cancelled while waiting. The
                reservation is returned first.
        """
        delay = self.reserve()
        if delay <= 0:
            return 0.0

        if timeout is not None and delay > timeout:
            self.cancel_reservation()
            raise RateLimitTimeoutError(self.name or "provider", delay, timeout)

        logger.debug(f"Rate limited ({self.name}), waiting {delay:.2f}s")
        try:
            await sleep(delay)
        except asyncio.CancelledError:
            self.cancel_reservation()
            raise

        return delay


class RateLimiterRegistry:
    """
    One token bucket per provider name.

    A bucket is rebuilt when a provider's (requests_per_minute, burst) changes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def get(self, provider: str, rate_limit: RateLimit) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(provider)
            if (
                bucket is None
                or bucket.requests_per_minute != rate_limit.requests_per_minute
                or bucket.burst != max(1, rate_limit.burst)
            ):
                bucket = TokenBucket(
                    rate_limit.requests_per_minute,
                    rate_limit.burst,
                    clock=self._clock,
                    name=provider,
                )
                self._buckets[provider] = bucket
                logger.debug(
                    f"Rate limiter for {provider}: {rate_limit.requests_per_minute}/min, "
                    f"burst {rate_limit.burst}"
                )
            return bucket

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def close(self) -> None:
        with self._lock:
            self._buckets.clear()


_default_registry: Optional[RateLimiterRegistry] = None
_default_registry_lock = threading.Lock()


def default_registry() -> RateLimiterRegistry:
    """Process-wide registry shared by dispatchers built without their own."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = RateLimiterRegistry()
        return _default_registry
