from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import JSONResponse, Response

from eduportal.api.admin import router as admin_router
from eduportal.api.auth import router as auth_router
from eduportal.api.payments import router as payments_router
from eduportal.api.public import router as public_router
from eduportal.api.schools import router as schools_router
from eduportal.api.subscriptions import router as subscriptions_router
from eduportal.config import Settings, validate_settings
from eduportal.config import settings as default_settings
from eduportal.errors import register_error_handlers
from eduportal.logging import configure_logging
from eduportal.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from eduportal.observability import ObservabilityMiddleware
from eduportal.services.common import Clock, utc_now
from eduportal.services.container import build_services

logger = logging.getLogger(__name__)

configure_logging()


def create_app(settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    settings = settings or default_settings
    clock = clock or utc_now
    services = build_services(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # type: ignore[arg-type]
        # ── Startup ──────────────────────────────────────────
        for w in validate_settings(settings):
            if settings.is_production:
                logger.error("Config warning: %s", w)
            else:
                logger.warning("Config warning: %s", w)
        logger.info("Application started (pid=%s)", os.getpid())
        yield

        # ── Shutdown ─────────────────────────────────────────
        logger.info("Application shutting down")
        services.close()

    app = FastAPI(title="SmartGenEduX School Portal API", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services
    app.state.rate_limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        clock=clock,
    )

    # ── Middleware (order matters: last added = first executed) ──
    register_error_handlers(app)

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "Retry-After"],
        )

    app.add_middleware(
        RateLimitMiddleware,
        limiter=app.state.rate_limiter,
        trusted_proxies=settings.trusted_proxies,
    )
    app.add_middleware(ObservabilityMiddleware)

    for router in (
        auth_router,
        schools_router,
        subscriptions_router,
        payments_router,
        admin_router,
        public_router,
    ):
        app.include_router(router, prefix="/api")

    # ── Health Checks ────────────────────────────────────────

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Liveness probe: ok whenever the process is serving."""
        return {"status": "ok"}

    @app.get("/health/ready")
    def readiness_check() -> JSONResponse:
        """Readiness probe: checks the store is reachable."""
        checks: dict[str, str] = {}
        try:
            services.store.ping()
            checks["store"] = "ok"
        except Exception as e:
            logger.warning("Readiness check failed: %s", e)
            checks["store"] = "error"

        all_ok = all(v == "ok" for v in checks.values())
        return JSONResponse(
            status_code=200 if all_ok else 503,
            content={"status": "ok" if all_ok else "degraded", "checks": checks},
        )

    @app.get("/metrics")
    def metrics() -> Response:
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
