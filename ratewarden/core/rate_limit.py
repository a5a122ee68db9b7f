"""Rate limiting dependency for FastAPI routes.

This module wires the in-memory limiter into the HTTP layer and projects
its results onto the conventional response headers.

Rate limiting strategy:
- One limit per (route path, caller).
- The caller is the X-API-Key header when present, otherwise the client IP.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated

from fastapi import Header, HTTPException, Request, Response, status

from ratewarden.adapters.rate_limit.base import RateLimitConfig, RateLimitResult
from ratewarden.adapters.rate_limit.clock import system_clock
from ratewarden.adapters.rate_limit.in_memory import InMemoryRateLimiter
from ratewarden.core.config import settings
from ratewarden.core.logging import hash_identifier

logger = logging.getLogger(__name__)


_limiter: InMemoryRateLimiter | None = None
_limiter_config: RateLimitConfig | None = None


def get_rate_limiter() -> InMemoryRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt
    and the old instance's sweep is stopped.

    Returns:
        InMemoryRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = settings.rate_limit.to_config()

    if _limiter is None or _limiter_config != config:
        if _limiter is not None:
            _limiter.close()
        _limiter = InMemoryRateLimiter(config)
        _limiter_config = config

    return _limiter


def resolve_caller(request: Request, x_api_key: str | None) -> str:
    """Identify the caller of the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced caller identifier.
    """

    if x_api_key:
        return f"api_key:{x_api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def rate_limit_headers(result: RateLimitResult, *, now: int) -> dict[str, str]:
    """Project a result onto X-RateLimit-* (and Retry-After when limited)."""

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset / 1000)),
    }
    if result.limited:
        headers["Retry-After"] = str(result.retry_after_seconds(now))
    return headers


async def enforce_rate_limit(
    request: Request,
    response: Response,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, counts one request for the caller on the current path. If
    the caller is over the limit, raises HTTP 429.

    Args:
        request: FastAPI request.
        response: Response whose headers receive the limit status.
        x_api_key: API key from X-API-Key header.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
    """

    cfg = settings.rate_limit
    if not cfg.enabled:
        return

    limiter = get_rate_limiter()
    caller = resolve_caller(request, x_api_key)
    resource = request.url.path

    result = limiter.check(resource, caller)
    headers = rate_limit_headers(result, now=system_clock()) if cfg.include_headers else {}

    log_extra = {
        "resource": resource,
        "caller_hash": hash_identifier(caller),
        "algorithm": cfg.algorithm.value,
        "limit": result.limit,
        "current": result.current,
        "remaining": result.remaining,
    }

    if not result.limited:
        logger.debug("rate_limit.allowed", extra=log_extra)
        response.headers.update(headers)
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "retry_after_s": headers.get("Retry-After")},
    )

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )
