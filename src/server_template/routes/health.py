"""
Health Check Endpoints

Liveness, readiness and full diagnostic endpoints for orchestrators,
load balancers and operators.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from server_template.models.health import (
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
)
from server_template.monitoring.health import HealthEvaluator

router = APIRouter(prefix="/health")


def get_evaluator(request: Request) -> HealthEvaluator:
    return request.app.state.health_evaluator


@router.get(
    "",
    response_model=HealthResponse,
    summary="Full diagnostic health",
    description="""
Service version plus memory, CPU, host and process metrics.

Memory and process sizes are rendered in human readable units
(e.g. `1.50 KB`), uptimes as `1d 1h 1m 5s`.
    """,
)
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse.model_validate(get_evaluator(request).full_health())


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Service liveness check",
    description="""
Simple liveness probe - is the process running?

**Always returns 200 OK** while the process can execute code.
    """,
)
async def liveness_check(request: Request) -> LivenessResponse:
    return LivenessResponse(**get_evaluator(request).liveness())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    response_model_exclude_none=True,
    summary="Service readiness check",
    description="""
Check if the service can accept traffic right now.

**Checks:**
- `cpu`: 1-minute load average below cores x 0.8 (production) or 0.9
- `memory`: memory usage below 90% (production only)

**Returns 503 when degraded or when metrics cannot be collected** so that
load balancers route around the instance.
    """,
    responses={
        503: {
            "description": "Service degraded or metrics unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "status": "degraded",
                        "timestamp": "2024-01-01T00:00:00.000Z",
                        "checks": {"cpu": False},
                        "details": {"cpu": "Load average: 3.21"},
                    }
                }
            },
        },
    },
)
async def readiness_check(request: Request) -> JSONResponse:
    verdict = get_evaluator(request).readiness()
    status_code = (
        status.HTTP_200_OK if verdict.is_ready else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(status_code=status_code, content=verdict.to_dict())
