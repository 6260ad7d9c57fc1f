"""Rate limiter interfaces.

Routes depend on this abstraction (not the concrete implementation) so the
per-process store can be replaced by a shared one without touching the HTTP
layer.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitOptions:
    """Window configuration supplied by the caller on every check.

    Attributes:
        window_ms: Window length in milliseconds.
        max: Maximum number of requests allowed per window.
    """

    window_ms: int
    max: int


@dataclass
class RateLimitEntry:
    """Counter state for a single identifier.

    Attributes:
        key: Identifier the counter belongs to (e.g. ``api-patch-<ip>``).
        count: Requests observed in the current window.
        reset_time: Epoch milliseconds at which the window expires.
    """

    key: str
    count: int
    reset_time: int

    def is_expired(self, now_ms: int) -> bool:
        return self.reset_time < now_ms


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        remaining: Requests left in the current window (never negative).
        reset_time: Epoch milliseconds when the current window ends.
        limit: Max requests per window the check was evaluated against.
    """

    allowed: bool
    remaining: int
    reset_time: int
    limit: int

    def retry_after_seconds(self, now_ms: int) -> int:
        """Seconds until the window resets, rounded up."""
        return max(0, int(math.ceil((self.reset_time - now_ms) / 1000)))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, options: RateLimitOptions) -> RateLimitResult:
        """Record one request for ``identifier`` and report whether it is allowed.

        Args:
            identifier: Caller-derived key (e.g. route scope plus client IP).
            options: Window length and request budget.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def now_ms(self) -> int:
        """Current time in epoch milliseconds, as seen by the limiter."""
        raise NotImplementedError
