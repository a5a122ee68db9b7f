from __future__ import annotations

from fastapi import APIRouter

from ratewarden.core.config import settings
from ratewarden.core.rate_limit import get_rate_limiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Never rate limited. Reports how many (resource, caller) keys the limiter
    currently tracks, expired-but-unswept entries included.
    """

    if not settings.rate_limit.enabled:
        return {"status": "ok", "rate_limit": "disabled"}

    limiter = get_rate_limiter()
    return {
        "status": "ok",
        "rate_limit": limiter.config.algorithm.value,
        "tracked_keys": limiter.size(),
    }
