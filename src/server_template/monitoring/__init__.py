"""
Server Monitoring

Health evaluation, startup readiness probing and Prometheus metrics.
"""

from __future__ import annotations

from .health import (
    HealthConfig,
    HealthEvaluator,
    HealthSnapshot,
    ReadinessVerdict,
    SystemMetrics,
    format_bytes,
    format_uptime,
)
from .metrics import (
    ACTIVE_REQUESTS,
    RATE_LIMIT_HITS,
    READINESS_STATUS,
    REQUEST_COUNT,
    REQUEST_DURATION,
    get_metrics_registry,
)
from .startup import ProbeAttempt, ProbeOutcome, StartupProber, wait_for_healthy

__all__ = [
    "ACTIVE_REQUESTS",
    "RATE_LIMIT_HITS",
    "READINESS_STATUS",
    "REQUEST_COUNT",
    "REQUEST_DURATION",
    "HealthConfig",
    "HealthEvaluator",
    "HealthSnapshot",
    "ProbeAttempt",
    "ProbeOutcome",
    "ReadinessVerdict",
    "StartupProber",
    "SystemMetrics",
    "format_bytes",
    "format_uptime",
    "get_metrics_registry",
    "wait_for_healthy",
]
