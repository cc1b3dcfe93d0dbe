"""
Rate Limiting Module.

Per-user request throttling scoped by subscription tier. Each tier owns one
sliding-window limiter; within a tier's limiter the user id is the key.

Uses a sliding window of request timestamps per user. Consuming a point is
non-blocking: when the window is full the caller gets a RateLimitExceededError
carrying the number of seconds until the oldest request leaves the window.

Usage:
    limiter = TierRateLimiter()

    try:
        limiter.consume(user_id, tier)
    except RateLimitExceededError as e:
        return 429, {"retryAfter": e.retry_after}

State is process-local and does not survive restarts.
"""

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Mapping, Optional

from .tiers import TIER_PROFILES, Tier, TierProfile, parse_tier


@dataclass
class RateLimitStats:
    """Statistics for one tier's limiter."""
    total_requests: int = 0
    rejected_requests: int = 0
    active_keys: int = 0


class RateLimitExceededError(Exception):
    """Raised when a key has used up its window."""

    def __init__(self, key: str, tier: str, current: int, limit: int, retry_after: int):
        self.key = key
        self.tier = tier
        self.current = current
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {key} ({tier}): {current}/{limit}, retry in {retry_after}s"
        )


class SlidingWindowLimiter:
    """
    Thread-safe per-key limiter using a sliding window algorithm.

    Every key gets `requests_per_window` requests in any `window_seconds`
    interval. The check and the record happen under one lock so two
    concurrent requests can never both take the last slot.
    """

    def __init__(
        self,
        name: str,
        requests_per_window: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize limiter.

        Args:
            name: Limiter name for errors/stats (the tier name)
            requests_per_window: Maximum requests per key per window
            window_seconds: Window length
            clock: Monotonic time source (injectable for tests)
        """
        self.name = name
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self._clock = clock

        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._stats = RateLimitStats()

    def _clean_window(self, key: str, now: float) -> Deque[float]:
        """Drop timestamps older than the window for a key."""
        window = self._windows.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        return window

    def _retry_after(self, window: Deque[float], now: float) -> int:
        """Whole seconds until the oldest request leaves the window."""
        if not window:
            return 0
        wait = window[0] + self.window_seconds - now
        return max(1, math.ceil(wait))

    def consume(self, key: str) -> int:
        """
        Take one request slot for a key.

        Returns:
            Remaining slots in the current window

        Raises:
            RateLimitExceededError: If the key's window is full
        """
        with self._lock:
            now = self._clock()
            window = self._clean_window(key, now)

            if len(window) >= self.requests_per_window:
                self._stats.rejected_requests += 1
                raise RateLimitExceededError(
                    key,
                    self.name,
                    len(window),
                    self.requests_per_window,
                    self._retry_after(window, now),
                )

            window.append(now)
            self._stats.total_requests += 1
            return self.requests_per_window - len(window)

    def check(self, key: str) -> bool:
        """Check if a request would be allowed without consuming a slot."""
        with self._lock:
            window = self._clean_window(key, self._clock())
            return len(window) < self.requests_per_window

    def get_remaining(self, key: str) -> int:
        """Remaining slots for a key in the current window."""
        with self._lock:
            window = self._clean_window(key, self._clock())
            return max(0, self.requests_per_window - len(window))

    def prune(self) -> int:
        """Forget keys whose windows are empty. Returns the number removed."""
        with self._lock:
            now = self._clock()
            empty = [key for key in list(self._windows) if not self._clean_window(key, now)]
            for key in empty:
                del self._windows[key]
            return len(empty)

    def get_stats(self) -> RateLimitStats:
        """Get limiter statistics."""
        with self._lock:
            return RateLimitStats(
                total_requests=self._stats.total_requests,
                rejected_requests=self._stats.rejected_requests,
                active_keys=len(self._windows),
            )

    def reset(self) -> None:
        """Reset all tracking."""
        with self._lock:
            self._windows.clear()
            self._stats = RateLimitStats()

    def to_dict(self) -> Dict[str, Any]:
        """Export limiter state as dictionary."""
        stats = self.get_stats()
        return {
            "name": self.name,
            "requests_per_window": self.requests_per_window,
            "window_seconds": self.window_seconds,
            "stats": {
                "total_requests": stats.total_requests,
                "rejected_requests": stats.rejected_requests,
                "active_keys": stats.active_keys,
            },
        }


class TierRateLimiter:
    """
    Registry of one SlidingWindowLimiter per tier.

    Capacities come from the tier profiles. Unknown tiers use the free
    tier's limiter.
    """

    def __init__(
        self,
        profiles: Optional[Mapping[Tier, TierProfile]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        profiles = profiles or TIER_PROFILES
        self._limiters: Dict[Tier, SlidingWindowLimiter] = {
            tier: SlidingWindowLimiter(
                name=tier.value,
                requests_per_window=profile.requests_per_minute,
                window_seconds=profile.rate_window_seconds,
                clock=clock,
            )
            for tier, profile in profiles.items()
        }

    def get(self, tier: Optional[str]) -> SlidingWindowLimiter:
        """Get the limiter for a tier name."""
        resolved = parse_tier(tier)
        return self._limiters.get(resolved) or self._limiters[Tier.FREE]

    def consume(self, user_id: str, tier: Optional[str]) -> int:
        """Consume one request for a user within their tier's limiter."""
        return self.get(tier).consume(user_id)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get stats for every tier limiter."""
        return {tier.value: limiter.to_dict() for tier, limiter in self._limiters.items()}

    def reset_all(self) -> None:
        """Reset all limiters."""
        for limiter in self._limiters.values():
            limiter.reset()
