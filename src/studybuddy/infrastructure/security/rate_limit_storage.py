"""In-memory storage for rate limiting counters.

Tracks one token bucket per key (caller identity). Buckets refill
continuously at ``rate_per_minute`` and hold at most ``burst`` tokens.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict


@dataclass
class TokenBucket:
    """Token bucket for a specific key."""

    tokens: float
    last_updated: float


class RateLimitStorage:
    """Thread-safe in-memory storage for rate limit counters."""

    def __init__(self, cleanup_interval: int = 3600, clock: Callable[[], float] = time.monotonic):
        """Initialize storage.

        Args:
            cleanup_interval: Interval in seconds to clean up stale entries.
            clock: Time source, injectable for tests.
        """
        self._storage: Dict[str, TokenBucket] = {}
        self._lock = Lock()
        self._clock = clock
        self._last_cleanup = clock()
        self._cleanup_interval = cleanup_interval

    def consume(self, key: str, rate_per_minute: float, burst: float = 1.0) -> tuple[bool, int, float]:
        """Attempt to consume a token for the given key.

        Args:
            key: The unique key (e.g. ``ai:<user id>``).
            rate_per_minute: Allowed requests per minute.
            burst: Maximum bucket capacity.

        Returns:
            A tuple of (is_allowed, remaining_tokens, seconds_until_next_token).
        """
        now = self._clock()
        rate_per_second = rate_per_minute / 60.0
        capacity = max(1.0, burst)

        with self._lock:
            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup_stale(now)

            bucket = self._storage.get(key)
            if bucket is None:
                # First request: start full and consume one right away
                bucket = TokenBucket(tokens=capacity - 1.0, last_updated=now)
                self._storage[key] = bucket
                return True, int(bucket.tokens), 0.0

            elapsed = now - bucket.last_updated
            bucket.tokens = min(capacity, bucket.tokens + elapsed * rate_per_second)
            bucket.last_updated = now

            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True, int(bucket.tokens), 0.0

            wait_seconds = (1.0 - bucket.tokens) / rate_per_second
            return False, 0, wait_seconds

    def reset(self, key: str) -> None:
        """Forget the bucket for a key."""
        with self._lock:
            self._storage.pop(key, None)

    def _cleanup_stale(self, now: float) -> None:
        """Remove entries that haven't been updated for a while."""
        stale_threshold = 3600
        to_delete = [k for k, v in self._storage.items() if now - v.last_updated > stale_threshold]
        for k in to_delete:
            del self._storage[k]
        self._last_cleanup = now
