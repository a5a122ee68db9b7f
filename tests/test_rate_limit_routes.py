"""Integration tests for the rate limit dependency and status routes."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from ratewarden.adapters.rate_limit.base import Algorithm, RateLimitResult
from ratewarden.core import rate_limit
from ratewarden.core.app_factory import create_app
from ratewarden.core.config import settings


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setattr(settings.rate_limit, "enabled", True)
    monkeypatch.setattr(settings.rate_limit, "max", 2)
    monkeypatch.setattr(settings.rate_limit, "window_ms", 60_000)
    monkeypatch.setattr(settings.rate_limit, "include_headers", True)
    rate_limit.get_rate_limiter().clear()

    with TestClient(create_app()) as test_client:
        yield test_client

    rate_limit.get_rate_limiter().clear()


def test_allowed_requests_carry_limit_headers(client: TestClient) -> None:
    first = client.get("/v1/ping", headers={"X-API-Key": "k1"})
    second = client.get("/v1/ping", headers={"X-API-Key": "k1"})

    assert first.status_code == 200
    assert first.json() == {"status": "pong"}
    assert first.headers["X-RateLimit-Limit"] == "2"
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.headers["X-RateLimit-Remaining"] == "0"
    assert "Retry-After" not in second.headers


def test_request_over_limit_gets_429_with_retry_after(client: TestClient) -> None:
    for _ in range(2):
        client.get("/v1/ping", headers={"X-API-Key": "k2"})

    blocked = client.get("/v1/ping", headers={"X-API-Key": "k2"})

    assert blocked.status_code == 429
    assert blocked.json()["detail"] == "Rate limit exceeded. Try again later."
    assert blocked.headers["X-RateLimit-Remaining"] == "0"
    assert 0 < int(blocked.headers["Retry-After"]) <= 60


def test_callers_are_limited_independently(client: TestClient) -> None:
    for _ in range(3):
        client.get("/v1/ping", headers={"X-API-Key": "noisy"})

    assert client.get("/v1/ping", headers={"X-API-Key": "quiet"}).status_code == 200


def test_status_route_reports_without_counting(client: TestClient) -> None:
    client.get("/v1/ping", headers={"X-API-Key": "k3"})

    for _ in range(3):
        status = client.get(
            "/v1/limits", params={"resource": "/v1/ping"}, headers={"X-API-Key": "k3"}
        )
        assert status.status_code == 200
        body = status.json()
        assert body["resource"] == "/v1/ping"
        assert body["current"] == 1
        assert body["remaining"] == 1
        assert body["limited"] is False
        assert body["limit"] == 2
        assert body["window"] == 60_000

    assert client.get("/v1/ping", headers={"X-API-Key": "k3"}).status_code == 200


def test_status_route_requires_resource(client: TestClient) -> None:
    assert client.get("/v1/limits").status_code == 422


def test_health_is_never_limited(client: TestClient) -> None:
    for _ in range(5):
        resp = client.get("/health")
        assert resp.status_code == 200

    body = resp.json()
    assert body["status"] == "ok"
    assert body["rate_limit"] == "fixed_window"
    assert "X-RateLimit-Limit" not in resp.headers


def test_headers_can_be_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "include_headers", False)

    client.get("/v1/ping", headers={"X-API-Key": "k4"})
    client.get("/v1/ping", headers={"X-API-Key": "k4"})
    blocked = client.get("/v1/ping", headers={"X-API-Key": "k4"})

    assert blocked.status_code == 429
    assert "Retry-After" not in blocked.headers
    assert "X-RateLimit-Limit" not in blocked.headers


def test_disabled_rate_limit_lets_everything_through(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings.rate_limit, "enabled", False)

    for _ in range(5):
        resp = client.get("/v1/ping", headers={"X-API-Key": "k5"})
        assert resp.status_code == 200
        assert "X-RateLimit-Limit" not in resp.headers


def test_limiter_is_rebuilt_when_settings_change(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "max", 7)
    first = rate_limit.get_rate_limiter()
    assert rate_limit.get_rate_limiter() is first

    monkeypatch.setattr(settings.rate_limit, "algorithm", Algorithm.SLIDING_WINDOW)
    second = rate_limit.get_rate_limiter()

    assert second is not first
    assert second.config.max == 7
    assert second.config.algorithm is Algorithm.SLIDING_WINDOW


def test_rate_limit_headers_projection() -> None:
    result = RateLimitResult(
        limited=True, remaining=0, reset=1_700_000_000_500, current=9, limit=5, window=60_000
    )

    headers = rate_limit.rate_limit_headers(result, now=1_699_999_998_200)

    assert headers == {
        "X-RateLimit-Limit": "5",
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": "1700000001",
        "Retry-After": "3",
    }
