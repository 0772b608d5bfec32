"""
Rate Limiting Middleware

In-process fixed window rate limiting keyed by client IP, with
``RateLimit-*`` response headers and a JSON 429 body.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from server_template.monitoring.metrics import RATE_LIMIT_HITS

logger = structlog.get_logger()

DEFAULT_MESSAGE = "Too many requests, please try again later"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limit of ``limit`` requests per ``window_seconds`` under ``path_prefix``."""

    name: str
    limit: int
    window_seconds: float
    path_prefix: str = "/"
    message: str = DEFAULT_MESSAGE

    @classmethod
    def from_window_ms(
        cls, name: str, limit: int, window_ms: int, path_prefix: str = "/", **kwargs: Any
    ) -> RateLimitPolicy:
        return cls(name, limit, window_ms / 1000, path_prefix, **kwargs)

    def applies_to(self, path: str) -> bool:
        prefix = self.path_prefix.rstrip("/")
        return not prefix or path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request against a policy."""

    policy: RateLimitPolicy
    allowed: bool
    remaining: int
    reset_after: float

    @property
    def limit(self) -> int:
        return self.policy.limit

    @property
    def retry_after(self) -> int:
        return max(1, math.ceil(self.reset_after))


class RateLimiter:
    """
    Fixed window request counter.

    Counters live in process memory, so limits apply per server process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (window_end, count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_prune = 0.0

    def _prune(self, now: float) -> None:
        if now < self._next_prune:
            return
        self._windows = {
            key: window for key, window in self._windows.items() if window[0] > now
        }
        self._next_prune = now + 60

    def hit(self, policy: RateLimitPolicy, identifier: str) -> RateLimitResult:
        """Count a request for ``identifier`` under ``policy``."""
        now = self._clock()
        self._prune(now)

        key = f"{policy.name}:{identifier}"
        window_end, count = self._windows.get(key, (0.0, 0))
        if now >= window_end:
            window_end, count = now + policy.window_seconds, 0

        count += 1
        self._windows[key] = (window_end, count)

        return RateLimitResult(
            policy=policy,
            allowed=count <= policy.limit,
            remaining=max(0, policy.limit - count),
            reset_after=window_end - now,
        )

    def reset(self) -> None:
        self._windows.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for rate limiting.

    Every applicable policy counts the request; the first exceeded policy
    short-circuits with 429. Allowed responses carry the headers of the
    most restrictive applicable policy.
    """

    def __init__(
        self,
        app: Any,
        policies: list[RateLimitPolicy],
        rate_limiter: RateLimiter | None = None,
        exempt_paths: list[str] | None = None,
    ) -> None:
        """
        Initialize rate limit middleware.

        Args:
            app: ASGI application
            policies: Policies evaluated in order for each request
            rate_limiter: Counter store (a fresh in-memory one by default)
            exempt_paths: Path prefixes never rate limited (health checks, metrics)
        """
        super().__init__(app)
        self.policies = policies
        self.rate_limiter = rate_limiter or RateLimiter()
        self.exempt_paths = exempt_paths if exempt_paths is not None else ["/health", "/metrics"]

    def _is_exempt_path(self, path: str) -> bool:
        return any(path.startswith(exempt) for exempt in self.exempt_paths)

    def _get_client_ip(self, request: Request) -> str:
        """
        Extract client IP from request.

        Handles X-Forwarded-For and X-Real-IP headers for proxy scenarios.
        """
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host

        return "unknown"

    @staticmethod
    def _add_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
        response.headers["RateLimit-Limit"] = str(result.limit)
        response.headers["RateLimit-Remaining"] = str(result.remaining)
        response.headers["RateLimit-Reset"] = str(math.ceil(result.reset_after))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if self._is_exempt_path(path):
            return await call_next(request)

        client_ip = self._get_client_ip(request)
        results: list[RateLimitResult] = []

        for policy in self.policies:
            if not policy.applies_to(path):
                continue

            result = self.rate_limiter.hit(policy, client_ip)
            results.append(result)

            if not result.allowed:
                RATE_LIMIT_HITS.labels(limiter=policy.name).inc()
                logger.warning(
                    "Rate limit exceeded",
                    ip=client_ip,
                    path=path,
                    limiter=policy.name,
                    limit=policy.limit,
                )
                response = JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"status": "error", "message": policy.message},
                )
                self._add_rate_limit_headers(response, result)
                response.headers["Retry-After"] = str(result.retry_after)
                return response

        response = await call_next(request)

        if results:
            most_restrictive = min(
                results,
                key=lambda r: r.remaining / r.limit if r.limit > 0 else 0,
            )
            self._add_rate_limit_headers(response, most_restrictive)

        return response
