from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request

from ratewarden.core.rate_limit import enforce_rate_limit, get_rate_limiter, resolve_caller
from ratewarden.schemas.rate_limit import RateLimitStatusResponse

router = APIRouter(tags=["Limits"])


@router.get("/limits", response_model=RateLimitStatusResponse)
def limit_status(
    request: Request,
    resource: Annotated[str, Query(min_length=1, description="Route path to report on")],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> RateLimitStatusResponse:
    """Report the caller's limit status for a resource.

    Reading the status does not count as a request against that resource.
    """

    caller = resolve_caller(request, x_api_key)
    result = get_rate_limiter().get(resource, caller)
    return RateLimitStatusResponse.from_result(resource, result)


@router.get("/ping", dependencies=[Depends(enforce_rate_limit)])
def ping() -> dict:
    """Rate limited endpoint for clients to probe their quota."""

    return {"status": "pong"}
