"""
Error Handling

Service exceptions and FastAPI exception handlers rendering every error
as ``{"status": "error", "message": ...}``.
"""

from __future__ import annotations

import traceback

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from server_template.config import settings

logger = structlog.get_logger()

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD")
ACCEPTED_BODY_TYPES = ("application/json", "application/x-www-form-urlencoded")

_STATUS_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: "Bad Request",
    status.HTTP_404_NOT_FOUND: "Not Found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method Not Allowed",
    413: "Payload too large",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    status.HTTP_429_TOO_MANY_REQUESTS: "Too many requests, please try again later",
}


class ServiceError(Exception):
    """Base exception for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class MethodNotAllowedError(ServiceError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method Not Allowed"


class UnsupportedMediaTypeError(ServiceError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    message = "Unsupported Media Type"


class PayloadTooLargeError(ServiceError):
    status_code = 413
    message = "Payload too large"


def error_response(status_code: int, message: str, **extra: object) -> JSONResponse:
    """Build the shared error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, **extra},
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error("Error", message=exc.message, status_code=exc.status_code, path=request.url.path)
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the shared envelope."""
    message = _STATUS_MESSAGES.get(exc.status_code)
    if message is None:
        message = exc.detail if isinstance(exc.detail, str) else "Internal Server Error"

    response = error_response(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed JSON bodies surface as 400 'Invalid JSON format'."""
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid JSON format")

    return error_response(
        422,
        "Validation error",
        errors=jsonable_encoder(exc.errors()),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all 500; the stack trace is only exposed in development."""
    logger.error(
        "Error",
        message=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=exc if settings.is_development else False,
    )

    extra: dict[str, object] = {}
    if settings.is_development:
        extra["stack"] = "".join(traceback.format_exception(exc))

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or "Internal Server Error",
        **extra,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install every exception handler on the application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
