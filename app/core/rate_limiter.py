"""Token bucket rate limiters for API clients and external quote providers."""

from __future__ import annotations

import math
import threading
import time

from app.core.config import settings
from app.core.logging import get_logger


logger = get_logger("core.rate_limiter")


class RateLimiter:
    """
    Token bucket rate limiter.

    Thread-safe. Used both as a non-blocking request gate and as a
    blocking throttle around provider calls.
    """

    def __init__(
        self,
        name: str,
        calls_per_second: float = 2.0,
        burst_size: int = 5,
    ):
        """
        Initialize rate limiter.

        Args:
            name: Identifier for logging
            calls_per_second: Sustained rate limit
            burst_size: Maximum burst of calls allowed
        """
        self.name = name
        self.calls_per_second = calls_per_second
        self.burst_size = burst_size
        self.tokens = float(burst_size)
        self.last_update = time.monotonic()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        """Refill tokens based on time elapsed."""
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(
            self.burst_size,
            self.tokens + elapsed * self.calls_per_second
        )
        self.last_update = now

    def try_acquire(self) -> tuple[bool, float]:
        """
        Take a token without waiting.

        Returns:
            (acquired, seconds until the next token is available)
        """
        with self._lock:
            self._refill()
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return True, 0.0
            return False, (1.0 - self.tokens) / self.calls_per_second

    def acquire_sync(self, timeout: float = 30.0) -> bool:
        """
        Acquire a token synchronously, blocking if necessary.

        Args:
            timeout: Maximum time to wait for a token

        Returns:
            True if token acquired, False if timeout
        """
        start = time.monotonic()

        while True:
            acquired, wait_time = self.try_acquire()
            if acquired:
                return True

            if time.monotonic() - start + wait_time > timeout:
                logger.warning(f"Rate limiter {self.name} timeout after {timeout}s")
                return False

            logger.debug(f"Rate limiter {self.name} waiting {wait_time:.2f}s")
            time.sleep(min(wait_time, 0.5))  # Sleep in chunks to allow timeout

    def is_full(self) -> bool:
        """True once the bucket has refilled to its burst size."""
        with self._lock:
            self._refill()
            return self.tokens >= self.burst_size

    def status(self) -> dict:
        """Get current rate limiter status."""
        with self._lock:
            self._refill()
            return {
                "name": self.name,
                "tokens_available": self.tokens,
                "burst_size": self.burst_size,
                "calls_per_second": self.calls_per_second,
            }


# Global rate limiters
_limiters: dict[str, RateLimiter] = {}
_registry_lock = threading.Lock()

CLIENT_PREFIX = "client:"
# Seconds between sweeps of idle client buckets
CLIENT_SWEEP_INTERVAL = 60.0
_last_sweep = 0.0


def get_rate_limiter(
    name: str,
    calls_per_second: float = 2.0,
    burst_size: int = 5,
) -> RateLimiter:
    """
    Get or create a named rate limiter.

    Args:
        name: Unique name for the limiter
        calls_per_second: Rate limit (only used on creation)
        burst_size: Burst size (only used on creation)

    Returns:
        RateLimiter instance
    """
    with _registry_lock:
        if name not in _limiters:
            _limiters[name] = RateLimiter(name, calls_per_second, burst_size)
            logger.debug(f"Created rate limiter '{name}': {calls_per_second}/s, burst={burst_size}")
        return _limiters[name]


def reset_rate_limiters() -> None:
    """Forget every bucket."""
    global _last_sweep
    with _registry_lock:
        _limiters.clear()
        _last_sweep = 0.0


def sweep_idle_client_limiters(force: bool = False) -> int:
    """
    Drop per-client buckets that have refilled completely.

    A full bucket carries no state, so a returning client simply gets a
    fresh one. Runs at most once per ``CLIENT_SWEEP_INTERVAL`` unless forced.

    Returns:
        Number of buckets removed
    """
    global _last_sweep
    now = time.monotonic()
    with _registry_lock:
        if not force and now - _last_sweep < CLIENT_SWEEP_INTERVAL:
            return 0
        _last_sweep = now
        idle = [
            name
            for name, limiter in _limiters.items()
            if name.startswith(CLIENT_PREFIX) and limiter.is_full()
        ]
        for name in idle:
            del _limiters[name]
    if idle:
        logger.debug(f"Dropped {len(idle)} idle client rate limiters")
    return len(idle)


def check_client_rate_limit(client_ip: str) -> tuple[bool, int]:
    """
    Charge one request to the caller's per-IP bucket.

    Returns:
        (allowed, retry_after_seconds)
    """
    sweep_idle_client_limiters()
    limiter = get_rate_limiter(
        f"{CLIENT_PREFIX}{client_ip}",
        calls_per_second=settings.rate_limit_per_second,
        burst_size=settings.rate_limit_max_requests,
    )
    allowed, wait = limiter.try_acquire()
    if not allowed:
        logger.warning(f"Rate limit exceeded for {client_ip}")
    return allowed, max(1, math.ceil(wait)) if not allowed else 0


YFINANCE_LIMITER = "yfinance"


def get_yfinance_limiter() -> RateLimiter:
    """
    Get the yfinance rate limiter.

    Conservative settings: 2 calls/sec, burst of 5.
    Yahoo Finance doesn't publish official limits but is known to rate limit.
    """
    return get_rate_limiter(YFINANCE_LIMITER, calls_per_second=2.0, burst_size=5)
