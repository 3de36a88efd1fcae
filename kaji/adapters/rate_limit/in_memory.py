"""In-memory per-client window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Each client's window starts at its first request, not at a wall-clock boundary.
- Expired records are purged lazily on every hit; there is no background sweep.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from kaji.adapters.rate_limit.base import AbstractRateLimiter, RateLimitRecord, RateLimitResult


class InMemoryRateLimiter(AbstractRateLimiter):
    """Count requests per client key over a fixed-length window.

    A record is created on the first request from a key and lives until its
    ``window_reset_at`` passes. A request arriving for a key whose record has
    already expired starts a fresh window, even if no purge ran in between.
    Rejected requests still count towards the window.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_ms: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            max_requests: Requests allowed per window.
            window_ms: Window length in milliseconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If max_requests or window_ms are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._max_requests = max_requests
        self._window_seconds = window_ms / 1000
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[str, RateLimitRecord] = {}

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def __len__(self) -> int:
        return len(self._records)

    def get_record(self, key: str) -> RateLimitRecord | None:
        return self._records.get(key)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, record in self._records.items() if record.window_reset_at < now]
        for key in expired:
            del self._records[key]

    def _touch(self, key: str, now: float) -> RateLimitRecord:
        record = self._records.get(key)
        if record is None or record.is_expired(now):
            record = RateLimitRecord(count=1, window_reset_at=now + self._window_seconds)
            self._records[key] = record
        else:
            record.count += 1
        return record

    def hit(self, key: str) -> RateLimitResult:
        """Record a request for ``key`` and return the decision.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._purge_expired(now)
            record = self._touch(key, now)
            count = record.count
            reset_at = record.window_reset_at

        remaining = max(0, self._max_requests - count)
        if count <= self._max_requests:
            return RateLimitResult(
                allowed=True,
                limit=self._max_requests,
                remaining=remaining,
                reset_at=reset_at,
            )

        return RateLimitResult(
            allowed=False,
            limit=self._max_requests,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=max(0, math.ceil(reset_at - now)),
        )
