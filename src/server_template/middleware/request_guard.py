"""
Request Guard Middleware

Rejects requests the API cannot handle before they reach a route:
oversized bodies, unsupported methods and unsupported body media types.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from fastapi import Request, Response

from server_template.config import settings
from server_template.errors import (
    ACCEPTED_BODY_TYPES,
    ALLOWED_METHODS,
    MethodNotAllowedError,
    PayloadTooLargeError,
    ServiceError,
    UnsupportedMediaTypeError,
    error_response,
)

logger = structlog.get_logger()

API_PREFIX = "/api"
BODY_METHODS = ("POST", "PUT", "PATCH")


def _is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def check_request(request: Request, max_body_size: int) -> None:
    """
    Validate a request against size, method and media type rules.

    Raises:
        PayloadTooLargeError: Declared body exceeds ``max_body_size``
        UnsupportedMediaTypeError: API body is not JSON or form-urlencoded
        MethodNotAllowedError: API method outside the supported set
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_body_size:
        raise PayloadTooLargeError()

    if not _is_api_path(request.url.path):
        return

    if request.method in BODY_METHODS:
        content_type = request.headers.get("content-type", "")
        if not any(accepted in content_type for accepted in ACCEPTED_BODY_TYPES):
            raise UnsupportedMediaTypeError()

    if request.method not in ALLOWED_METHODS:
        raise MethodNotAllowedError()


async def request_guard_middleware(request: Request, call_next: Callable) -> Response:
    try:
        check_request(request, settings.MAX_REQUEST_SIZE)
    except ServiceError as exc:
        logger.error(f"Error: {exc.message}", path=request.url.path, method=request.method)
        return error_response(exc.status_code, exc.message)

    return await call_next(request)
