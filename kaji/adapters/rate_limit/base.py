"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the in-process table can later be swapped for a shared store with atomic
increment-with-expiry, keeping the same header/rejection contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitRecord:
    """Per-client counter for the current window.

    Attributes:
        count: Requests observed since the window started.
        window_reset_at: UNIX epoch seconds when the window expires.
    """

    count: int
    window_reset_at: float

    def is_expired(self, now: float) -> bool:
        return self.window_reset_at <= now


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit hit.

    Attributes:
        allowed: Whether the request may proceed downstream.
        limit: Max requests per window.
        remaining: Requests left in the current window, never negative.
        reset_at: UNIX epoch seconds when the client's window resets.
        retry_after_seconds: Whole seconds to wait, set only when rejected.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def hit(self, key: str) -> RateLimitResult:
        """Record one request for ``key`` and decide whether it is allowed.

        Args:
            key: Client identifier (e.g., source address).

        Returns:
            RateLimitResult describing the decision and header values.
        """
        raise NotImplementedError
