# interfaces/rate_limiter.py
"""
Fixed-Window Rate Limiter
Counts requests per client with an atomic counter in the key-value store.
The counter expires with its window; once it passes the maximum, requests are
refused until it expires. Store failures let the request through.
"""

import math
import time
from typing import Callable, NamedTuple

from loguru import logger

from ..errors import StoreError
from .kv_store import KeyValueStore


class RateLimitResult(NamedTuple):
    allowed: bool
    remaining: int
    reset_at: float     # epoch seconds

    def retry_after(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


class RateLimiter:
    """Per-identifier fixed-window limiter"""

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = 100,
        window_seconds: int = 60,
        key_prefix: str = "api",
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self.clock = clock

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings, key_prefix: str = "api") -> "RateLimiter":
        return cls(
            store,
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            key_prefix=key_prefix
        )

    def _key(self, identifier: str) -> str:
        return f"ratelimit:{self.key_prefix}:{identifier}"

    def check(self, identifier: str) -> RateLimitResult:
        """
        Count one request for identifier

        Returns:
            RateLimitResult: allowed is False once the window is full
        """
        key = self._key(identifier)
        now = self.clock()

        try:
            count, expires_in = self.store.incr(key, ttl=self.window_seconds)
        except (StoreError, ValueError) as e:
            logger.error(f"Rate limiter error for {identifier}: {e}")
            return RateLimitResult(
                allowed=True,
                remaining=self.max_requests,
                reset_at=now + self.window_seconds
            )

        reset_at = now + (expires_in if expires_in is not None else self.window_seconds)

        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {identifier}")
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

        return RateLimitResult(
            allowed=True,
            remaining=self.max_requests - count,
            reset_at=reset_at
        )

    def reset(self, identifier: str) -> None:
        self.store.delete(self._key(identifier))
