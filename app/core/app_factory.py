from __future__ import annotations

"""Application factory for the FastAPI app.

Builds the app together with the objects it owns (rate limiter,
repositories) so each app instance, including those created in tests, has
isolated state. The lifespan starts and stops the rate limiter sweep task.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.storage.in_memory import InMemoryLeadRepository, InMemoryPackageRepository
from app.api.routes import health_router, leads_router, packages_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI):
    limiter: InMemoryFixedWindowRateLimiter = app.state.rate_limiter
    limiter.start()
    try:
        yield
    finally:
        await limiter.stop()


def create_app(
    *,
    rate_limiter: InMemoryFixedWindowRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Optional limiter to use instead of a fresh one (tests
            pass one with a controllable clock).

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Karang Tawulan API",
        description=(
            "Content API for the Karang Tawulan beach tourism site: tour packages, "
            "lead capture, and an admin surface protected by X-API-Key. Package "
            "updates and deletions are rate limited per client IP."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    if rate_limiter is None:
        rate_limiter = InMemoryFixedWindowRateLimiter(
            sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
        )
    app.state.rate_limiter = rate_limiter
    app.state.package_repository = InMemoryPackageRepository()
    app.state.lead_repository = InMemoryLeadRepository()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(packages_router, prefix="/api")
    app.include_router(leads_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
