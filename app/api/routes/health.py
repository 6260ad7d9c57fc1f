from __future__ import annotations

from fastapi import APIRouter, Request

from app.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Liveness check, also reporting whether the rate limit sweeper runs."""

    limiter = getattr(request.app.state, "rate_limiter", None)
    return HealthResponse(rate_limit_sweeper=bool(getattr(limiter, "running", False)))
