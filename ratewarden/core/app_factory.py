"""Application factory for the FastAPI app.

Centralizes app construction (metadata, handlers, routers, lifespan) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ratewarden.api.routes import health_router, limits_router
from ratewarden.core.config import settings
from ratewarden.core.exception_handlers import setup_exception_handlers
from ratewarden.core.logging import configure_logging
from ratewarden.core.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    limiter = get_rate_limiter() if settings.rate_limit.enabled else None
    logger.info(
        "app.startup",
        extra={
            "rate_limit_enabled": settings.rate_limit.enabled,
            "algorithm": settings.rate_limit.algorithm.value,
            "limit": settings.rate_limit.max,
            "window_ms": settings.rate_limit.window_ms,
        },
    )
    try:
        yield
    finally:
        if limiter is not None:
            limiter.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="ratewarden",
        description=(
            "In-process request admission tracking with fixed window, sliding "
            "window and token bucket limits. Protected routes report their "
            "status through X-RateLimit-* headers and answer 429 when over limit."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    return app
