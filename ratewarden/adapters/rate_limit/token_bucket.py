"""Token-bucket counting.

The bucket holds up to ``max`` tokens and gains ``refill_rate`` tokens per
whole ``refill_interval_ms`` elapsed. Every request spends one token, even
when none is left: the balance goes negative to record how far into deficit
the caller is. The next refill starts again from at least the refilled
amount, so a starved caller is not penalised twice.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ratewarden.adapters.rate_limit.base import AlgorithmEngine, RateLimitResult


@dataclass(frozen=True)
class TokenBucketSnapshot:
    tokens: float
    last_refill: int


@dataclass
class TokenBucketEntry:
    tokens: float
    last_refill: int

    def snapshot(self) -> TokenBucketSnapshot:
        return TokenBucketSnapshot(tokens=self.tokens, last_refill=self.last_refill)


class TokenBucketEngine(AlgorithmEngine[TokenBucketEntry]):
    """Continuously refilled permit counter."""

    def _refilled(self, entry: TokenBucketEntry, now: int) -> tuple[float, int]:
        """Return ``(tokens, last_refill)`` after applying whole elapsed ticks."""
        interval = self.config.refill_interval_ms
        ticks = max(now - entry.last_refill, 0) // interval
        if ticks <= 0:
            return entry.tokens, entry.last_refill

        added = ticks * self.config.refill_rate
        tokens = min(max(entry.tokens + added, added), self.config.max)
        return tokens, entry.last_refill + ticks * interval

    def _reset(self, tokens: float, last_refill: int, now: int) -> int:
        """When at least one whole token is available again."""
        if tokens >= 1:
            return now

        rate = self.config.refill_rate
        if rate <= 0 or self.config.max < 1:
            return now + self.config.window_ms

        # A refill never leaves less than the amount it added.
        ticks = max(math.ceil((1 - max(tokens, 0)) / rate), 1)
        return last_refill + ticks * self.config.refill_interval_ms

    def _status(self, tokens: float, last_refill: int, now: int) -> RateLimitResult:
        whole = math.floor(tokens)
        return self._result(
            current=self.config.max - whole,
            reset=self._reset(tokens, last_refill, now),
            limited=tokens < 0,
        )

    def admit(
        self, entry: TokenBucketEntry | None, now: int
    ) -> tuple[TokenBucketEntry, RateLimitResult]:
        if entry is None:
            entry = TokenBucketEntry(tokens=self.config.max, last_refill=now)
        else:
            entry.tokens, entry.last_refill = self._refilled(entry, now)

        entry.tokens -= 1
        return entry, self._status(entry.tokens, entry.last_refill, now)

    def inspect(self, entry: TokenBucketEntry | None, now: int) -> RateLimitResult:
        if entry is None:
            return self._status(self.config.max, now, now)

        tokens, last_refill = self._refilled(entry, now)
        return self._status(tokens, last_refill, now)

    def is_expired(self, entry: TokenBucketEntry, now: int) -> bool:
        # Refill phase lives in last_refill; only clear() drops a bucket.
        return False
