"""
Health Check Models

Pydantic models for health, liveness and readiness endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LivenessResponse(BaseModel):
    """Liveness check response model."""

    status: str = Field(..., description="Liveness status, always 'ok'")
    timestamp: str = Field(..., description="Check timestamp in ISO format")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str = Field(..., description="Readiness status: ok, degraded or error")
    timestamp: str = Field(..., description="Check timestamp in ISO format")
    checks: dict[str, bool] | None = Field(None, description="Individual readiness checks")
    details: dict[str, str] | None = Field(None, description="Details for failing checks")
    error: str | None = Field(None, description="Metric collection error message")


class MemoryInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: str
    free: str
    used: str
    percent_used: int = Field(..., alias="percentUsed")


class CpuInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cores: int
    model: str
    load_avg: list[float] = Field(..., alias="loadAvg")


class SystemInfo(BaseModel):
    platform: str
    arch: str
    version: str = Field(..., description="Python runtime version")
    uptime: str


class ProcessInfo(BaseModel):
    pid: int
    memory: str = Field(..., description="Resident memory of the server process")
    uptime: str


class HealthResponse(BaseModel):
    """Full diagnostic health response model."""

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Check timestamp in ISO format")
    memory: MemoryInfo
    cpu: CpuInfo
    system: SystemInfo
    process: ProcessInfo


class ErrorResponse(BaseModel):
    """Error envelope shared by every error response."""

    status: str = Field(default="error", description="Always 'error'")
    message: str = Field(..., description="Human readable error message")
