"""Tests for the fixed-window rate limiter and its middleware."""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from eduportal.errors import register_error_handlers
from eduportal.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    get_client_ip,
    parse_trusted_proxies,
)
from eduportal.observability import ObservabilityMiddleware
from tests.helpers import FrozenClock


def _make_request(client_host: str | None, forwarded_for: str | None = None) -> Request:
    headers: list[tuple[bytes, bytes]] = []
    if forwarded_for is not None:
        headers.append((b"x-forwarded-for", forwarded_for.encode("utf-8")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/pricing",
        "headers": headers,
        "client": (client_host, 12345) if client_host is not None else None,
    }
    return Request(scope)


class TestFixedWindowRateLimiter:
    def test_allows_up_to_limit(self) -> None:
        limiter = FixedWindowRateLimiter(limit=3, window_seconds=60, clock=FrozenClock())
        decisions = [limiter.hit("1.2.3.4") for _ in range(3)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

    def test_rejects_without_incrementing(self) -> None:
        clock = FrozenClock()
        limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
        limiter.hit("ip")
        limiter.hit("ip")
        blocked = [limiter.hit("ip") for _ in range(5)]
        assert not any(d.allowed for d in blocked)
        assert blocked[-1].retry_after == 60
        # The window did not grow, so it resets on schedule.
        clock.advance(seconds=61)
        assert limiter.hit("ip").allowed

    def test_window_boundary_is_inclusive(self) -> None:
        clock = FrozenClock()
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
        assert limiter.hit("ip").allowed
        clock.advance(seconds=60)
        assert not limiter.hit("ip").allowed
        clock.advance(seconds=1)
        assert limiter.hit("ip").allowed

    def test_reset_clears_windows(self) -> None:
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FrozenClock())
        limiter.hit("ip")
        assert not limiter.hit("ip").allowed
        limiter.reset()
        assert limiter.hit("ip").allowed

    def test_keys_are_independent(self) -> None:
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FrozenClock())
        assert limiter.hit("a").allowed
        assert limiter.hit("b").allowed
        assert not limiter.hit("a").allowed

    def test_retry_after_counts_down(self) -> None:
        clock = FrozenClock()
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
        limiter.hit("ip")
        clock.advance(seconds=45)
        assert limiter.hit("ip").retry_after == 15


class TestClientIp:
    def test_uses_peer_address_by_default(self) -> None:
        request = _make_request("10.0.0.5", forwarded_for="1.1.1.1")
        assert get_client_ip(request, []) == "10.0.0.5"

    def test_ignores_forwarded_for_from_untrusted_peer(self) -> None:
        trusted = parse_trusted_proxies("10.0.0.0/8")
        request = _make_request("203.0.113.9", forwarded_for="1.1.1.1")
        assert get_client_ip(request, trusted) == "203.0.113.9"

    def test_honours_forwarded_for_from_trusted_proxy(self) -> None:
        trusted = parse_trusted_proxies("10.0.0.0/8")
        request = _make_request("10.0.0.5", forwarded_for="198.51.100.7, 10.0.0.9")
        assert get_client_ip(request, trusted) == "198.51.100.7"

    def test_spoofed_leftmost_hop_is_skipped(self) -> None:
        trusted = parse_trusted_proxies("10.0.0.0/8")
        request = _make_request("10.0.0.5", forwarded_for="6.6.6.6, 198.51.100.7")
        assert get_client_ip(request, trusted) == "198.51.100.7"

    def test_missing_client(self) -> None:
        assert get_client_ip(_make_request(None), []) == "unknown"

    def test_invalid_proxy_entries_are_ignored(self) -> None:
        assert [str(n) for n in parse_trusted_proxies("bogus, 192.168.0.0/16,")] == [
            "192.168.0.0/16"
        ]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def limited_client(clock: FrozenClock) -> TestClient:
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock),
    )
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    return TestClient(app)


class TestRateLimitMiddleware:
    def test_sets_headers_on_success(self, limited_client: TestClient) -> None:
        resp = limited_client.get("/ping")
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Limit"] == "2"
        assert resp.headers["X-RateLimit-Remaining"] == "1"
        assert "X-RateLimit-Reset" in resp.headers

    def test_returns_429_envelope(self, limited_client: TestClient) -> None:
        limited_client.get("/ping")
        limited_client.get("/ping")
        resp = limited_client.get("/ping")
        assert resp.status_code == 429
        body = resp.json()
        assert body["code"] == "rate_limit_exceeded"
        assert body["error"] == body["message"]
        assert body["details"] == {"retry_after_seconds": 60}
        assert body["request_id"] == resp.headers["x-request-id"]
        assert resp.headers["Retry-After"] == "60"
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    def test_recovers_after_window(self, limited_client: TestClient, clock: FrozenClock) -> None:
        for _ in range(3):
            limited_client.get("/ping")
        clock.advance(seconds=61)
        assert limited_client.get("/ping").status_code == 200

    def test_applies_to_full_app(self, app, client: TestClient) -> None:
        app.state.rate_limiter.limit = 1
        assert client.get("/api/pricing").status_code == 200
        resp = client.get("/health")
        assert resp.status_code == 429
