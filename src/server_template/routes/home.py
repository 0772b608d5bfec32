"""
API Home Endpoints

Welcome route and a deliberate failure route for exercising error handling.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request

from server_template.models.health import ErrorResponse
from server_template.monitoring.health import utc_timestamp

router = APIRouter(prefix="/api")
logger = structlog.get_logger()

WELCOME_MESSAGE = "Welcome to the FastAPI Server Template API"


@router.get("/", summary="API welcome message")
async def get_home(request: Request) -> dict[str, str]:
    logger.info(
        "Handling root request",
        query=dict(request.query_params),
        path=request.url.path,
        method=request.method,
    )

    if request.query_params:
        logger.warning(
            "Query parameters detected",
            params=dict(request.query_params),
            warning="Unexpected query parameters",
        )

    logger.debug("Request headers", headers=dict(request.headers))

    accept = request.headers.get("accept")
    if accept and "application/json" not in accept and "*/*" not in accept:
        logger.warning("Non-JSON accept header detected", accept=accept)

    return {
        "status": "success",
        "message": WELCOME_MESSAGE,
        "timestamp": utc_timestamp(),
    }


@router.get(
    "/error",
    summary="Raise a server error",
    include_in_schema=False,
    responses={500: {"model": ErrorResponse}},
)
async def trigger_error() -> None:
    logger.error("Test server error", details={"code": "TEST_ERROR", "path": "/api/error"})
    raise RuntimeError("Test server error")
