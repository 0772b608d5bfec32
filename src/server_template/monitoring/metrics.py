"""
Prometheus Metrics Collection

Request, rate limiting and health metrics for the server template.
"""

from __future__ import annotations

from typing import Any

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

# Separate from prometheus_client.REGISTRY
_REGISTRY = CollectorRegistry()

_metrics_cache: dict[str, Any] = {}


def _get_or_create(metric_cls: type, name: str, documentation: str, **kwargs: Any) -> Any:
    """Get existing metric or create new one on the shared registry."""
    if name in _metrics_cache:
        return _metrics_cache[name]

    metric = metric_cls(name, documentation, registry=_REGISTRY, **kwargs)
    _metrics_cache[name] = metric
    return metric


SERVER_INFO: Info = _get_or_create(
    Info,
    "server_template",
    "Server template service information",
)

# HTTP Request Metrics
REQUEST_COUNT: Counter = _get_or_create(
    Counter,
    "server_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path", "status_code"],
)

REQUEST_DURATION: Histogram = _get_or_create(
    Histogram,
    "server_http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["method", "path"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

ACTIVE_REQUESTS: Gauge = _get_or_create(
    Gauge,
    "server_http_requests_active",
    "Number of active HTTP requests",
)

# Rate Limiting Metrics
RATE_LIMIT_HITS: Counter = _get_or_create(
    Counter,
    "server_rate_limit_hits_total",
    "Total number of requests rejected by a rate limiter",
    labelnames=["limiter"],
)

# Health Metrics
READINESS_STATUS: Gauge = _get_or_create(
    Gauge,
    "server_readiness_status",
    "Readiness status (1=ok, 0=degraded or error)",
)

READINESS_CHECK: Gauge = _get_or_create(
    Gauge,
    "server_readiness_check_status",
    "Readiness sub-check status (1=pass, 0=fail)",
    labelnames=["check"],
)


def get_metrics_registry() -> CollectorRegistry:
    """Get the Prometheus registry holding every server metric."""
    return _REGISTRY


def render_latest() -> tuple[bytes, str]:
    """Render the registry in Prometheus exposition format."""
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


def set_server_info(name: str, version: str, **extra_labels: str) -> None:
    """
    Set service information.

    Args:
        name: Service name
        version: Service version
        **extra_labels: Additional labels to include
    """
    info_dict: dict[str, Any] = {
        "name": name,
        "version": version,
    }
    info_dict.update(extra_labels)
    SERVER_INFO.info(info_dict)
