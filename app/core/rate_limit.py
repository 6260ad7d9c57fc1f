"""Rate limiting dependencies for package mutation routes.

Strategy:
- Fixed-window limit per client IP and route scope.
- Client IP comes from the first X-Forwarded-For entry, then X-Real-IP,
  then the literal ``unknown`` (all IP-less clients share one bucket).
- The limiter instance lives on ``app.state.rate_limiter`` and is created
  by the app factory; its sweep task follows the app lifespan.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitOptions
from app.core.config import settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_IP = "unknown"

UPDATE_SCOPE = "api-patch"
DELETE_SCOPE = "api-delete"


def get_client_ip(request: Request) -> str:
    """Derive the client IP from proxy headers.

    Args:
        request: FastAPI request.

    Returns:
        The first forwarded address, the real-IP header, or ``unknown``.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return UNKNOWN_CLIENT_IP


def build_identifier(scope: str, client_ip: str) -> str:
    return f"{scope}-{client_ip}"


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    return request.app.state.rate_limiter


def _hash_identifier(identifier: str) -> str:
    """Hash the limiter identifier so raw IPs never reach the logs."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def _enforce_rate_limit(request: Request, *, scope: str, max_requests: int) -> None:
    """Count the request against ``scope`` and raise when over budget.

    Raises:
        RateLimitAppError: When the client exceeded the window budget.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    identifier = build_identifier(scope, get_client_ip(request))
    options = RateLimitOptions(
        window_ms=settings.app.rate_limit_window_ms,
        max=max_requests,
    )

    result = limiter.check(identifier, options)
    log_extra = {
        "scope": scope,
        "key_hash": _hash_identifier(identifier),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_ms": options.window_ms,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
        return

    retry_after = result.retry_after_seconds(limiter.now_ms())
    logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": retry_after})

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Too many requests, please try again later.",
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_time": result.reset_time,
        },
    )


async def enforce_update_rate_limit(request: Request) -> None:
    """FastAPI dependency throttling package updates per client IP."""

    _enforce_rate_limit(
        request,
        scope=UPDATE_SCOPE,
        max_requests=settings.app.rate_limit_update_max,
    )


async def enforce_delete_rate_limit(request: Request) -> None:
    """FastAPI dependency throttling package deletions per client IP."""

    _enforce_rate_limit(
        request,
        scope=DELETE_SCOPE,
        max_requests=settings.app.rate_limit_delete_max,
    )
