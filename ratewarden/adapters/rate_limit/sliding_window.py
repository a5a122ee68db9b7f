"""Sliding-window counting over a histogram of time buckets.

Requests are grouped into buckets of ``precision_ms``. The running total is
the sum of the buckets that are still inside the trailing window, which
smooths the burst allowed at a fixed-window boundary. A key under sustained
load keeps roughly ``window_ms / precision_ms`` buckets.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ratewarden.adapters.rate_limit.base import AlgorithmEngine, RateLimitResult


@dataclass(frozen=True)
class SlidingWindowSnapshot:
    buckets: tuple[tuple[int, int], ...]
    window_end: int


@dataclass
class SlidingWindowEntry:
    """Per-key histogram.

    Attributes:
        buckets: Bucket start timestamp -> request count, in ascending order.
        window_end: When the newest bucket leaves the window, i.e. when the
            whole entry is expired.
    """

    buckets: dict[int, int] = field(default_factory=dict)
    window_end: int = 0

    def snapshot(self) -> SlidingWindowSnapshot:
        return SlidingWindowSnapshot(
            buckets=tuple(self.buckets.items()),
            window_end=self.window_end,
        )


class SlidingWindowEngine(AlgorithmEngine[SlidingWindowEntry]):
    """Rolling sum of per-bucket counts."""

    def _round(self, now: int) -> int:
        precision = self.config.precision_ms
        return (now // precision) * precision

    def _live_buckets(self, entry: SlidingWindowEntry, rounded_now: int) -> list[tuple[int, int]]:
        cutoff = rounded_now - self.config.window_ms
        return [(ts, count) for ts, count in entry.buckets.items() if ts > cutoff]

    def _reset(self, live: list[tuple[int, int]], rounded_now: int) -> int:
        # Buckets are inserted in time order, so the first live one is the oldest.
        oldest = live[0][0] if live else rounded_now
        return oldest + self.config.window_ms

    def admit(
        self, entry: SlidingWindowEntry | None, now: int
    ) -> tuple[SlidingWindowEntry, RateLimitResult]:
        rounded_now = self._round(now)
        if entry is None or self.is_expired(entry, now):
            entry = SlidingWindowEntry()

        live = self._live_buckets(entry, rounded_now)
        if len(live) != len(entry.buckets):
            entry.buckets = dict(live)

        total = sum(count for _, count in live) + 1
        buckets = entry.buckets
        if buckets and rounded_now not in buckets and rounded_now < next(reversed(buckets)):
            # Clock stepped backwards; keep the histogram ordered.
            buckets[rounded_now] = 1
            entry.buckets = dict(sorted(buckets.items()))
        else:
            buckets[rounded_now] = buckets.get(rounded_now, 0) + 1
        entry.window_end = next(reversed(entry.buckets)) + self.config.window_ms

        reset = self._reset(list(entry.buckets.items()), rounded_now)
        return entry, self._result(current=total, reset=reset)

    def inspect(self, entry: SlidingWindowEntry | None, now: int) -> RateLimitResult:
        rounded_now = self._round(now)
        if entry is None:
            return self._result(current=0, reset=rounded_now + self.config.window_ms)

        live = self._live_buckets(entry, rounded_now)
        total = sum(count for _, count in live)
        return self._result(current=total, reset=self._reset(live, rounded_now))

    def is_expired(self, entry: SlidingWindowEntry, now: int) -> bool:
        return entry.window_end <= self._round(now)
