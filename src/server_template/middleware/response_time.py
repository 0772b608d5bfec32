"""
Response Time Middleware

Measures handler latency and reports it in the ``X-Response-Time`` header.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from fastapi import Request, Response

logger = structlog.get_logger()


def format_response_time(elapsed_seconds: float) -> str:
    """Milliseconds with three decimals, e.g. ``12.345ms``."""
    return f"{elapsed_seconds * 1000:.3f}ms"


async def response_time_middleware(request: Request, call_next: Callable) -> Response:
    start_time = time.perf_counter()

    response = await call_next(request)

    elapsed = format_response_time(time.perf_counter() - start_time)
    response.headers["X-Response-Time"] = elapsed

    logger.info(
        "Request completed",
        method=request.method,
        url=request.url.path,
        status_code=response.status_code,
        response_time_ms=elapsed[:-2],
    )

    return response
