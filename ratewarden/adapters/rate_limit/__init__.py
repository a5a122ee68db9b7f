"""Rate limiting adapters.

This package holds the in-process admission tracker: three counting
disciplines behind one engine contract, an entry store with a periodic
eviction sweep, and the ``InMemoryRateLimiter`` facade wiring them together.
"""

from ratewarden.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Algorithm,
    RateLimitConfig,
    RateLimitResult,
)
from ratewarden.adapters.rate_limit.in_memory import (
    EntrySnapshot,
    InMemoryRateLimiter,
    build_config,
)

__all__ = [
    "AbstractRateLimiter",
    "Algorithm",
    "EntrySnapshot",
    "InMemoryRateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "build_config",
]
