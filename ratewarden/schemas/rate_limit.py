"""Pydantic schemas for rate limit status responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ratewarden.adapters.rate_limit.base import RateLimitResult


class RateLimitStatusResponse(BaseModel):
    """Current limit status of one caller for one resource."""

    resource: str = Field(..., description="Resource the status refers to (route path).")
    limited: bool = Field(..., description="Whether the caller is currently over the limit.")
    remaining: int = Field(..., description="Requests left before rejection.", ge=0)
    reset: int = Field(..., description="Epoch milliseconds when the limit next relaxes.")
    current: int = Field(..., description="Requests counted so far; may exceed the limit.")
    limit: int = Field(..., description="Configured maximum.")
    window: int = Field(..., description="Configured window duration in milliseconds.")

    @classmethod
    def from_result(cls, resource: str, result: RateLimitResult) -> "RateLimitStatusResponse":
        return cls(
            resource=resource,
            limited=result.limited,
            remaining=result.remaining,
            reset=result.reset,
            current=result.current,
            limit=result.limit,
            window=result.window,
        )
