"""In-memory rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every operation runs under the store lock.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from pydantic import ValidationError

from ratewarden.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Algorithm,
    AlgorithmEngine,
    RateLimitConfig,
    RateLimitResult,
)
from ratewarden.adapters.rate_limit.clock import Clock, system_clock
from ratewarden.adapters.rate_limit.fixed_window import FixedWindowEngine, FixedWindowSnapshot
from ratewarden.adapters.rate_limit.keys import encode_key
from ratewarden.adapters.rate_limit.sliding_window import (
    SlidingWindowEngine,
    SlidingWindowSnapshot,
)
from ratewarden.adapters.rate_limit.store import (
    EntryStore,
    ScheduledTask,
    Scheduler,
    ThreadScheduler,
)
from ratewarden.adapters.rate_limit.token_bucket import TokenBucketEngine, TokenBucketSnapshot
from ratewarden.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

EntrySnapshot = Union[FixedWindowSnapshot, SlidingWindowSnapshot, TokenBucketSnapshot]

ENGINES: dict[Algorithm, type[AlgorithmEngine[Any]]] = {
    Algorithm.FIXED_WINDOW: FixedWindowEngine,
    Algorithm.SLIDING_WINDOW: SlidingWindowEngine,
    Algorithm.TOKEN_BUCKET: TokenBucketEngine,
}


def build_config(config: RateLimitConfig | None = None, **overrides: Any) -> RateLimitConfig:
    """Validate limiter configuration.

    Args:
        config: Base configuration; defaults are used when omitted.
        **overrides: Field values replacing those of ``config``.

    Returns:
        Validated, frozen configuration.

    Raises:
        ConfigurationAppError: If any field is invalid, including an unknown
            algorithm name.
    """

    data = config.model_dump() if config is not None else {}
    data.update(overrides)
    try:
        return RateLimitConfig.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ConfigurationAppError(
            code="invalid_rate_limit_config",
            message="Invalid rate limiter configuration",
            details={"context": {"errors": errors}},
        ) from exc


class InMemoryRateLimiter(AbstractRateLimiter):
    """Tracks request admission per (resource, caller) pair.

    The counting discipline is chosen once at construction. Expired entries
    are removed by a periodic sweep when cleanup is enabled.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Clock = system_clock,
        scheduler: Scheduler | None = None,
        **overrides: Any,
    ) -> None:
        """Initialize the limiter.

        Args:
            config: Limiter configuration.
            clock: Time source returning epoch milliseconds.
            scheduler: Runs the eviction sweep; a daemon thread by default.
            **overrides: Configuration fields overriding ``config``
                (e.g., ``max=10, window_ms=1000``).

        Raises:
            ConfigurationAppError: If the configuration is invalid.
        """
        self._config = build_config(config, **overrides)
        self._engine = ENGINES[self._config.algorithm](self._config)
        self._clock = clock
        self._scheduler = scheduler or ThreadScheduler()
        self._store = EntryStore()
        self._sweep_task: ScheduledTask | None = None

        logger.debug(
            "rate_limit.limiter_created",
            extra={
                "algorithm": self._config.algorithm.value,
                "limit": self._config.max,
                "window_ms": self._config.window_ms,
                "cleanup": self._config.enable_cleanup,
            },
        )
        self._ensure_sweeping()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def _ensure_sweeping(self) -> None:
        if not self._config.enable_cleanup:
            return
        with self._store.lock:
            if self._sweep_task is None or not self._sweep_task.active:
                self._sweep_task = self._scheduler.schedule(
                    self._config.cleanup_interval_ms, self.sweep
                )

    def _stop_sweeping(self) -> None:
        with self._store.lock:
            task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()

    def check(self, resource: str, caller: str) -> RateLimitResult:
        """Count a request and return the admission decision."""
        self._ensure_sweeping()
        key = encode_key(resource, caller)
        now = self._clock()
        with self._store.lock:
            entry, result = self._engine.admit(self._store.get(key), now)
            self._store.put(key, entry)
        return result

    def get(self, resource: str, caller: str) -> RateLimitResult:
        """Report the current status without counting or mutating state."""
        key = encode_key(resource, caller)
        now = self._clock()
        with self._store.lock:
            return self._engine.inspect(self._store.get(key), now)

    def peek(self, resource: str, caller: str) -> EntrySnapshot | None:
        """Return a frozen copy of the raw entry, or None if not tracked."""
        with self._store.lock:
            entry = self._store.get(encode_key(resource, caller))
            return entry.snapshot() if entry is not None else None

    def size(self) -> int:
        """Number of tracked keys, including expired ones not yet swept."""
        return len(self._store)

    def sweep(self) -> int:
        """Remove every fully expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = self._store.sweep(lambda entry: self._engine.is_expired(entry, now))
        if removed:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": removed, "remaining_entries": len(self._store)},
            )
        return removed

    def clear(self) -> None:
        """Drop all entries and stop the sweep until the next ``check``."""
        self._stop_sweeping()
        self._store.clear()

    def close(self) -> None:
        """Stop the sweep, keeping tracked state."""
        self._stop_sweeping()
