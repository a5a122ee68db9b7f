"""Unit tests for fixed-window counting."""

from __future__ import annotations

from ratewarden.adapters.rate_limit.in_memory import InMemoryRateLimiter


def _limiter(clock, **overrides) -> InMemoryRateLimiter:
    overrides.setdefault("enable_cleanup", False)
    return InMemoryRateLimiter(clock=clock, algorithm="fixed_window", **overrides)


def test_third_request_over_limit_of_two_is_rejected(clock) -> None:
    limiter = _limiter(clock, max=2, window_ms=1000)

    results = [limiter.check("/api/test", "user1") for _ in range(3)]

    assert [r.limited for r in results] == [False, False, True]
    assert [r.current for r in results] == [1, 2, 3]
    assert [r.remaining for r in results] == [1, 0, 0]
    assert all(r.reset == clock.current + 1000 for r in results)
    assert all(r.limit == 2 and r.window == 1000 for r in results)


def test_counter_keeps_growing_past_the_limit(clock) -> None:
    limiter = _limiter(clock, max=2, window_ms=1000)

    for _ in range(4):
        limiter.check("/api/test", "user1")
    result = limiter.check("/api/test", "user1")

    assert result.limited is True
    assert result.current == 5
    assert result.remaining == 0


def test_window_expiry_starts_fresh_count(clock) -> None:
    limiter = _limiter(clock, max=2, window_ms=1000)
    for _ in range(3):
        limiter.check("/api/test", "user3")

    clock.advance(1100)
    result = limiter.check("/api/test", "user3")

    assert result.limited is False
    assert result.current == 1
    assert result.remaining == 1
    assert result.reset == clock.current + 1000


def test_window_ends_exactly_at_window_end(clock) -> None:
    limiter = _limiter(clock, max=1, window_ms=1000)
    limiter.check("/r", "c")

    clock.advance(999)
    assert limiter.check("/r", "c").current == 2

    clock.advance(1)
    assert limiter.check("/r", "c").current == 1


def test_non_positive_max_rejects_every_request(clock) -> None:
    limiter = _limiter(clock, max=0)

    result = limiter.check("/r", "c")

    assert result.limited is True
    assert result.remaining == 0
    assert result.current == 1


def test_zero_window_opens_a_new_window_per_request(clock) -> None:
    limiter = _limiter(clock, max=1, window_ms=0)

    first = limiter.check("/r", "c")
    second = limiter.check("/r", "c")

    assert first.current == second.current == 1
    assert second.limited is False


def test_get_does_not_count(clock) -> None:
    limiter = _limiter(clock, max=3, window_ms=1000)
    limiter.check("/r", "c")

    assert limiter.get("/r", "c").current == 1
    assert limiter.get("/r", "c").current == 1
    assert limiter.check("/r", "c").current == 2


def test_get_for_unknown_key_reports_full_quota_without_tracking(clock) -> None:
    limiter = _limiter(clock, max=3, window_ms=1000)

    result = limiter.get("/r", "c")

    assert result.limited is False
    assert result.current == 0
    assert result.remaining == 3
    assert result.reset == clock.current + 1000
    assert limiter.size() == 0


def test_get_after_expiry_reports_zero_but_leaves_entry(clock) -> None:
    limiter = _limiter(clock, max=3, window_ms=1000)
    limiter.check("/r", "c")
    limiter.check("/r", "c")

    clock.advance(2000)

    assert limiter.get("/r", "c").current == 0
    snapshot = limiter.peek("/r", "c")
    assert snapshot is not None
    assert snapshot.count == 2
