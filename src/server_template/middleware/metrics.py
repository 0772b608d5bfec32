"""
Metrics Middleware

Records request count, latency and in-flight requests for every request.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response

from server_template.monitoring.metrics import (
    ACTIVE_REQUESTS,
    REQUEST_COUNT,
    REQUEST_DURATION,
)


def route_label(request: Request) -> str:
    """Route template (``/users/{id}``) when matched, else the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


async def metrics_middleware(request: Request, call_next: Callable) -> Response:
    """
    Count and time each request.

    A request that raises is recorded with status 500 before the
    exception propagates.
    """
    status_code = 500
    started = time.perf_counter()
    ACTIVE_REQUESTS.inc()

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        ACTIVE_REQUESTS.dec()
        path = route_label(request)
        REQUEST_COUNT.labels(method=request.method, path=path, status_code=status_code).inc()
        REQUEST_DURATION.labels(method=request.method, path=path).observe(
            time.perf_counter() - started
        )
