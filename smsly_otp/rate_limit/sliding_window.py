"""
Sliding Window Rate Limiter
===========================
In-memory sliding window rate limiter keyed by phone number or client address.
"""

import math
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from .models import RateLimitInfo


class SlidingWindowLimiter:
    """
    Sliding window rate limiter over per-key deques of request instants.

    A request is recorded only when it is allowed, so a blocked caller does
    not extend its own lockout. Single process only.
    """

    def __init__(
        self,
        rate: int = 3,
        window: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            rate: Requests allowed per window
            window: Window size in seconds
            clock: Time source returning seconds
        """
        self.rate = rate
        self.window = window
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def _evict(self, key: str, now: float, window: float) -> Deque[float]:
        instants = self._windows.setdefault(key, deque())
        while instants and now - instants[0] >= window:
            instants.popleft()
        return instants

    def allow(self, key: str, window_ms: float, max_requests: int) -> bool:
        """
        Record a request for `key` if the trailing window has room.

        Args:
            key: Rate limit key (e.g., phone number)
            window_ms: Window length in milliseconds
            max_requests: Requests allowed within the window

        Returns:
            True if the request is allowed
        """
        return self._check(key, window_ms / 1000.0, max_requests).allowed

    def check(self, key: str) -> RateLimitInfo:
        """Check using the limiter's configured rate and window."""
        return self._check(key, self.window, self.rate)

    def _check(self, key: str, window: float, rate: int) -> RateLimitInfo:
        now = self._clock()
        instants = self._evict(key, now, window)
        count = len(instants)

        if count >= rate:
            oldest = instants[0] if instants else now
            retry_after = max(math.ceil(oldest + window - now), 1)
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=rate,
                reset_at=int(oldest + window),
                retry_after=retry_after,
            )

        instants.append(now)
        return RateLimitInfo(
            allowed=True,
            remaining=rate - count - 1,
            limit=rate,
            reset_at=int(instants[0] + window),
        )

    def count(self, key: str) -> int:
        """Requests currently inside the window for `key`."""
        return len(self._evict(key, self._clock(), self.window))

    def prune(self) -> int:
        """
        Drop keys with no requests left inside the configured window.

        Returns:
            Number of keys removed
        """
        now = self._clock()
        stale = [
            key for key, instants in self._windows.items()
            if not instants or now - instants[-1] >= self.window
        ]
        for key in stale:
            del self._windows[key]
        return len(stale)

    def reset(self, key: Optional[str] = None) -> None:
        """Clear one key's window, or every window."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def get_key(self, prefix: str, identifier: str) -> str:
        """Generate a rate limit key."""
        return f"ratelimit:{prefix}:{identifier}"
