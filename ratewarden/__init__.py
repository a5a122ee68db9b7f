"""In-process request admission tracking."""

from ratewarden.adapters.rate_limit import (
    AbstractRateLimiter,
    Algorithm,
    EntrySnapshot,
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)
from ratewarden.core.errors import ConfigurationAppError

__all__ = [
    "AbstractRateLimiter",
    "Algorithm",
    "ConfigurationAppError",
    "EntrySnapshot",
    "InMemoryRateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
]
