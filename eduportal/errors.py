"""Error taxonomy and structured error handlers with request_id correlation.

Every error response includes a consistent envelope:
    {
        "code": "error_code",
        "message": "Human-readable message",
        "error": "Human-readable message",
        "details": null | object,
        "request_id": "uuid"
    }

``error`` mirrors ``message`` for clients that read the flat error field.
"""
from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ServiceError(HTTPException):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"
    default_message = "Server error"

    def __init__(
        self,
        message: str | None = None,
        details: object = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(
            status_code=type(self).status_code,
            detail={"code": self.code, "message": self.message, "details": details},
            headers=headers,
        )


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Validation error"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Unauthorized"

    def __init__(self, message: str | None = None, details: object = None) -> None:
        super().__init__(message, details, headers={"WWW-Authenticate": "Bearer"})


class RateLimitError(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limit_exceeded"
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            details={"retry_after_seconds": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


class VerificationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "verification_failed"
    default_message = "Payment verification failed"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Record was modified concurrently"


class GatewayNotConfiguredError(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "gateway_not_configured"
    default_message = "Payment gateway not configured"


class ServerError(ServiceError):
    pass


def _get_request_id(request: Request) -> str:
    """Extract request_id set by ObservabilityMiddleware."""
    return getattr(request.state, "request_id", "unknown")


def error_payload(
    code: str, message: str, details: object, request_id: str
) -> dict:
    return {
        "code": code,
        "message": message,
        "error": message,
        "details": details,
        "request_id": request_id,
    }


def register_error_handlers(app: object) -> None:
    @app.exception_handler(StarletteHTTPException)  # type: ignore[arg-type]
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        request_id = _get_request_id(request)
        detail = exc.detail
        code = f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(code, message, details, request_id),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)  # type: ignore[arg-type]
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        request_id = _get_request_id(request)
        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            extra={"request_id": request_id},
        )
        details = [
            {
                "loc": list(err.get("loc", ())),
                "msg": err.get("msg"),
                "type": err.get("type"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_payload(
                "validation_error",
                "Validation error",
                details,
                request_id,
            ),
        )

    @app.exception_handler(Exception)  # type: ignore[arg-type]
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        request_id = _get_request_id(request)
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )
        error = ServerError()
        return JSONResponse(
            status_code=error.status_code,
            content=error_payload(error.code, error.message, None, request_id),
        )
