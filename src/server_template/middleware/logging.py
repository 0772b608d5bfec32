"""
Request Logging Middleware

Per-request trace ids and one structured log event per request.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response

from server_template.config import settings

logger = structlog.get_logger()

TRACE_HEADERS = ("X-Trace-ID", "X-Request-ID")


def resolve_trace_id(request: Request) -> str:
    """Reuse an inbound ``X-Request-ID`` or mint a new uuid4."""
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind request context for every log event emitted while handling it.

    The trace id is echoed back in ``X-Trace-ID`` and ``X-Request-ID``.
    The "HTTP Request" event is skipped when ``LOG_REQUESTS`` is off.
    """
    trace_id = resolve_trace_id(request)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        trace_id=trace_id,
        method=request.method,
        url=str(request.url),
        client_host=request.client.host if request.client else None,
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            "Request failed",
            error=str(exc),
            error_type=type(exc).__name__,
            duration_ms=_elapsed_ms(started),
        )
        raise

    if settings.LOG_REQUESTS:
        logger.info(
            "HTTP Request",
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
            user_agent=request.headers.get("user-agent"),
        )

    for header in TRACE_HEADERS:
        response.headers[header] = trace_id
    return response
