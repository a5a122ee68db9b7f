"""Rate limiter interfaces.

The HTTP layer depends on these abstractions (not the concrete engines) so
the counting discipline can be swapped through configuration alone.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class Algorithm(str, Enum):
    """Available counting disciplines."""

    FIXED_WINDOW = "fixed_window"
    SLIDING_WINDOW = "sliding_window"
    TOKEN_BUCKET = "token_bucket"


class RateLimitConfig(BaseModel):
    """Per-limiter configuration, immutable once built.

    All durations are milliseconds. ``max`` is the request limit per window
    for the window algorithms and the bucket capacity for the token bucket.
    """

    algorithm: Algorithm = Algorithm.FIXED_WINDOW
    window_ms: int = Field(60_000, ge=0)
    max: int = 60
    cleanup_interval_ms: int = Field(30_000, gt=0)
    enable_cleanup: bool = True
    refill_rate: float = Field(1, ge=0)
    refill_interval_ms: int = Field(1_000, gt=0)
    precision_ms: int = Field(100, gt=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a check/get operation.

    Attributes:
        limited: Whether the request is rejected.
        remaining: Requests (or tokens) left before rejection, never negative.
        reset: Epoch milliseconds when the limit next relaxes.
        current: Unclamped usage; may exceed ``limit``.
        limit: Configured maximum.
        window: Configured window duration in milliseconds.
    """

    limited: bool
    remaining: int
    reset: int
    current: int
    limit: int
    window: int

    def retry_after_seconds(self, now: int) -> int:
        """Seconds a rejected caller should wait, rounded up."""
        return max(0, math.ceil((self.reset - now) / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, resource: str, caller: str) -> RateLimitResult:
        """Count one request from ``caller`` against ``resource``.

        Args:
            resource: What is being accessed (e.g., a route path).
            caller: Who is accessing it (e.g., API key, IP address).

        Returns:
            RateLimitResult describing whether the request is rejected.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, resource: str, caller: str) -> RateLimitResult:
        """Report the caller's status without counting a request."""
        raise NotImplementedError


E = TypeVar("E")


class AlgorithmEngine(ABC, Generic[E]):
    """Counting discipline operating on one entry at a time.

    Engines hold no per-key state of their own: the store hands them an
    entry (or ``None`` when the key is unknown) for the duration of a single
    operation.
    """

    def __init__(self, config: RateLimitConfig) -> None:
        self._config = config

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @abstractmethod
    def admit(self, entry: E | None, now: int) -> tuple[E, RateLimitResult]:
        """Count one request and return the entry to store plus the result."""
        raise NotImplementedError

    @abstractmethod
    def inspect(self, entry: E | None, now: int) -> RateLimitResult:
        """Report the current status without modifying ``entry``."""
        raise NotImplementedError

    @abstractmethod
    def is_expired(self, entry: E, now: int) -> bool:
        """Whether ``entry`` carries no state a fresh entry would not."""
        raise NotImplementedError

    def _result(self, *, current: int, reset: int, limited: bool | None = None) -> RateLimitResult:
        limit = self._config.max
        return RateLimitResult(
            limited=current > limit if limited is None else limited,
            remaining=max(limit - current, 0),
            reset=int(reset),
            current=current,
            limit=limit,
            window=self._config.window_ms,
        )
