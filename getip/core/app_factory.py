"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
rate limiter lifecycle) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from getip.adapters.rate_limit.base import AbstractRateLimiter
from getip.api.routes import health_router, ip_router
from getip.core.config import settings
from getip.core.exception_handlers import setup_exception_handlers
from getip.core.logging import configure_logging
from getip.core.middleware import edge_middleware, request_id_middleware
from getip.core.rate_limit import build_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    limiter: AbstractRateLimiter = app.state.rate_limiter
    logger.info(
        "app.startup",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit": limiter.limit,
            "window_s": limiter.window_seconds,
        },
    )
    try:
        yield
    finally:
        limiter.close()
        logger.info("app.shutdown")


def create_app(rate_limiter: AbstractRateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log, debug=settings.app.debug)

    app = FastAPI(
        title="getip API",
        description=(
            "Returns the caller's IP address with coarse location metadata "
            "(country, city, region, timezone, ASN). Rate limited per client IP "
            "with a fixed window (60 requests per minute by default)."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # One limiter per app instance; closed by the lifespan on shutdown
    app.state.rate_limiter = rate_limiter or build_rate_limiter(settings.app)

    # Middleware (last registered is outermost)
    app.middleware("http")(edge_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(ip_router)
    app.include_router(health_router)

    return app
