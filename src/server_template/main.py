"""
Server Template - FastAPI Application

Application factory plus the process entry point that binds the listener
and gates readiness on a successful self-probe.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI
from starlette.responses import Response

from server_template import __version__
from server_template.config import settings
from server_template.errors import register_exception_handlers
from server_template.logging_config import configure_logging
from server_template.middleware.compression import CompressionMiddleware
from server_template.middleware.cors import setup_cors
from server_template.middleware.logging import logging_middleware
from server_template.middleware.metrics import metrics_middleware
from server_template.middleware.rate_limit import RateLimitMiddleware, RateLimitPolicy
from server_template.middleware.request_guard import request_guard_middleware
from server_template.middleware.response_time import response_time_middleware
from server_template.middleware.security_headers import SecurityHeadersMiddleware
from server_template.monitoring.health import HealthConfig, HealthEvaluator
from server_template.monitoring.metrics import render_latest, set_server_info
from server_template.monitoring.startup import StartupProber, readiness_url, wait_for_healthy
from server_template.routes import health, home

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    evaluator: HealthEvaluator = app.state.health_evaluator

    logger.info(
        "Starting server",
        name=settings.SERVER_NAME,
        version=evaluator.version,
        environment=settings.NODE_ENV,
    )
    set_server_info(settings.SERVER_NAME, evaluator.version, environment=settings.NODE_ENV)

    try:
        yield
    finally:
        logger.info("Shutting down server")


def _setup_rate_limiting(app: FastAPI) -> None:
    """General limiter on every route, stricter limiter under /api."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    policies = [
        RateLimitPolicy.from_window_ms(
            "general",
            limit=settings.GENERAL_RATE_LIMIT_MAX,
            window_ms=settings.GENERAL_RATE_LIMIT_WINDOW_MS,
        ),
        RateLimitPolicy.from_window_ms(
            "api",
            limit=settings.API_RATE_LIMIT_MAX,
            window_ms=settings.API_RATE_LIMIT_WINDOW_MS,
            path_prefix="/api",
        ),
    ]
    app.add_middleware(
        RateLimitMiddleware,
        policies=policies,
        exempt_paths=settings.RATE_LIMIT_EXEMPT_PATHS,
    )


def create_app(
    health_evaluator: HealthEvaluator | None = None,
    extra_routers: Iterable[APIRouter] = (),
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        health_evaluator: Evaluator backing the health routes; built from
            settings when omitted
        extra_routers: Additional routers to mount after the built-in ones
    """
    app = FastAPI(
        title=settings.SERVER_NAME,
        description="Boilerplate HTTP service with health checks and standard middleware",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    app.state.health_evaluator = health_evaluator or HealthEvaluator(
        HealthConfig(environment=settings.NODE_ENV)
    )

    register_exception_handlers(app)

    # Middleware is listed innermost first; the last one added runs first.
    @app.middleware("http")
    async def add_request_guard(request, call_next):
        return await request_guard_middleware(request, call_next)

    _setup_rate_limiting(app)

    app.add_middleware(
        CompressionMiddleware,
        min_size=settings.COMPRESSION_MIN_SIZE,
        compression_level=settings.COMPRESSION_LEVEL,
    )
    setup_cors(app)
    app.add_middleware(SecurityHeadersMiddleware)

    @app.middleware("http")
    async def add_logging_middleware(request, call_next):
        return await logging_middleware(request, call_next)

    if settings.ENABLE_METRICS:
        @app.middleware("http")
        async def add_metrics_middleware(request, call_next):
            return await metrics_middleware(request, call_next)

    @app.middleware("http")
    async def add_response_time(request, call_next):
        return await response_time_middleware(request, call_next)

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(home.router, tags=["api"])
    for router in extra_routers:
        app.include_router(router)

    if settings.ENABLE_METRICS:
        @app.get("/metrics", include_in_schema=False)
        async def metrics() -> Response:
            content, media_type = render_latest()
            return Response(content=content, media_type=media_type)

    return app


# Create the app instance
app = create_app()


async def run_server(application: FastAPI | None = None) -> int:
    """
    Bind the listener, then block "ready" on a successful self-probe.

    Args:
        application: App to serve; the module-level ``app`` by default

    Returns:
        Process exit status: 0 after a clean shutdown, 1 when the startup
        probe never saw the service healthy
    """
    config = uvicorn.Config(
        application or app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve())

    while not server.started:
        if server_task.done():
            logger.error("Failed to start server", port=settings.PORT)
            return 1
        await asyncio.sleep(0.05)

    logger.info("Server is listening", port=settings.PORT)

    if settings.STARTUP_PROBE_ENABLED:
        prober = StartupProber(
            readiness_url(settings.PORT),
            retries=settings.STARTUP_PROBE_RETRIES,
            interval_ms=settings.STARTUP_PROBE_INTERVAL_MS,
        )
        probe_task = asyncio.create_task(
            wait_for_healthy(
                settings.SERVER_NAME,
                port=settings.PORT,
                environment=settings.NODE_ENV,
                prober=prober,
            )
        )

        # Shutdown during the probe cancels it
        await asyncio.wait({probe_task, server_task}, return_when=asyncio.FIRST_COMPLETED)
        if not probe_task.done():
            prober.cancel()
        healthy = await probe_task

        if not healthy:
            logger.error("Server failed initial health check")
            server.should_exit = True
            await server_task
            return 1

        logger.info("Server is ready to accept connections")

    await server_task
    return 0


def serve() -> None:
    """Process entry point: configure logging, run, exit with status."""
    configure_logging(
        level=settings.LOG_LEVEL,
        pretty=settings.PRETTY_LOGGING,
        silent=settings.SILENT,
    )
    sys.exit(asyncio.run(run_server()))


if __name__ == "__main__":
    serve()
