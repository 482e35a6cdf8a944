"""Fixed-window rate limiter applied to every request.

Each client address gets ``limit`` requests per window. Counters live in
process memory, so every worker enforces its own budget.
"""
from __future__ import annotations

import ipaddress
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

from cachetools import TTLCache
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from eduportal.errors import RateLimitError, error_payload
from eduportal.services.common import Clock, utc_now

logger = logging.getLogger(__name__)

_CACHE_SIZE = 100_000

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime
    retry_after: int


@dataclass
class _Window:
    count: int
    reset_at: datetime


class FixedWindowRateLimiter:
    def __init__(
        self, limit: int = 100, window_seconds: int = 60, clock: Clock = utc_now
    ) -> None:
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock
        # Entries outlive their window; the cache only bounds memory.
        self._windows: TTLCache[str, _Window] = TTLCache(
            maxsize=_CACHE_SIZE,
            ttl=window_seconds * 2,
            timer=lambda: clock().timestamp(),
        )
        self._lock = Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + self.window)
                self._windows[key] = window
            elif window.count >= self.limit:
                return self._decision(False, window, now)
            else:
                window.count += 1
                self._windows[key] = window
            return self._decision(True, window, now)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _decision(self, allowed: bool, window: _Window, now: datetime) -> RateLimitDecision:
        retry_after = max(1, math.ceil((window.reset_at - now).total_seconds()))
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - window.count),
            reset_at=window.reset_at,
            retry_after=retry_after,
        )


def parse_trusted_proxies(value: str) -> list[IPNetwork]:
    networks: list[IPNetwork] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            networks.append(ipaddress.ip_network(item, strict=False))
        except ValueError:
            logger.warning("Ignoring invalid TRUSTED_PROXIES entry %r", item)
    return networks


def _is_trusted(address: str, trusted: list[IPNetwork]) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip in network for network in trusted)


def get_client_ip(request: Request, trusted: list[IPNetwork]) -> str:
    """Peer address, or the forwarded client when the peer is a trusted proxy."""
    client = request.client
    peer = client.host if client else "unknown"
    if not trusted or not _is_trusted(peer, trusted):
        return peer
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    # Walk back from the nearest hop until we leave our own proxies.
    for hop in reversed(hops):
        if not _is_trusted(hop, trusted):
            return hop
    return hops[0] if hops else peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: object,
        limiter: FixedWindowRateLimiter,
        trusted_proxies: str = "",
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self.limiter = limiter
        self._trusted = parse_trusted_proxies(trusted_proxies)

    def _too_many_requests_response(
        self, request: Request, decision: RateLimitDecision
    ) -> JSONResponse:
        exc = RateLimitError(decision.retry_after)
        headers = dict(exc.headers or {})
        headers.update(self._limit_headers(decision))
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(
                exc.code,
                exc.message,
                exc.details,
                getattr(request.state, "request_id", "unknown"),
            ),
            headers=headers,
        )

    @staticmethod
    def _limit_headers(decision: RateLimitDecision) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(int(decision.reset_at.timestamp())),
        }

    async def dispatch(self, request: Request, call_next: object) -> Response:
        client_ip = get_client_ip(request, self._trusted)
        decision = self.limiter.hit(client_ip)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded: %s on %s",
                client_ip,
                request.url.path,
                extra={"client_ip": client_ip},
            )
            return self._too_many_requests_response(request, decision)

        response: Response = await call_next(request)  # type: ignore[call-arg]
        response.headers.update(self._limit_headers(decision))
        return response
