"""Fixed-window counting.

A key's window opens on the first request after the previous window ended
and lasts ``window_ms``. The counter keeps incrementing past the limit so
callers can see how far over it a burst went.
"""

from __future__ import annotations

from dataclasses import dataclass

from ratewarden.adapters.rate_limit.base import AlgorithmEngine, RateLimitResult


@dataclass(frozen=True)
class FixedWindowSnapshot:
    count: int
    window_end: int


@dataclass
class FixedWindowEntry:
    count: int
    window_end: int

    def snapshot(self) -> FixedWindowSnapshot:
        return FixedWindowSnapshot(count=self.count, window_end=self.window_end)


class FixedWindowEngine(AlgorithmEngine[FixedWindowEntry]):
    """Counter reset at the end of each window."""

    def admit(
        self, entry: FixedWindowEntry | None, now: int
    ) -> tuple[FixedWindowEntry, RateLimitResult]:
        if entry is None or self.is_expired(entry, now):
            entry = FixedWindowEntry(count=1, window_end=now + self.config.window_ms)
        else:
            entry.count += 1

        return entry, self._result(current=entry.count, reset=entry.window_end)

    def inspect(self, entry: FixedWindowEntry | None, now: int) -> RateLimitResult:
        if entry is None or self.is_expired(entry, now):
            return self._result(current=0, reset=now + self.config.window_ms)
        return self._result(current=entry.count, reset=entry.window_end)

    def is_expired(self, entry: FixedWindowEntry, now: int) -> bool:
        return entry.window_end <= now
