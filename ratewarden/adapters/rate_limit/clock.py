"""Time sources for the limiter.

Every timestamp inside the limiter is integer epoch milliseconds. The clock
is injected so tests can advance logical time instead of sleeping.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Return the wall clock as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
