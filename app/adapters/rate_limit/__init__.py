"""Rate limiting adapters.

The service ships a per-process fixed-window limiter. The abstract interface
leaves room for a shared store (e.g. Redis) when running several instances.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitOptions,
    RateLimitResult,
)
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitEntry",
    "RateLimitOptions",
    "RateLimitResult",
]
