"""Tests for Prometheus metrics collection."""

from __future__ import annotations

from server_template.monitoring.metrics import (
    get_metrics_registry,
    render_latest,
    set_server_info,
)


def test_server_info() -> None:
    set_server_info("Test Server", "1.2.3", environment="test")

    registry = get_metrics_registry()
    labels = {"name": "Test Server", "version": "1.2.3", "environment": "test"}
    assert registry.get_sample_value("server_template_info", labels) == 1.0


def test_readiness_gauges_follow_evaluation(make_evaluator) -> None:
    registry = get_metrics_registry()

    make_evaluator(load=(1.0, 0, 0)).readiness()
    assert registry.get_sample_value("server_readiness_status") == 1.0
    assert registry.get_sample_value("server_readiness_check_status", {"check": "cpu"}) == 1.0

    make_evaluator(load=(10.0, 0, 0)).readiness()
    assert registry.get_sample_value("server_readiness_status") == 0.0
    assert registry.get_sample_value("server_readiness_check_status", {"check": "cpu"}) == 0.0


def test_render_latest() -> None:
    content, media_type = render_latest()

    assert media_type.startswith("text/plain")
    assert b"# HELP server_readiness_status" in content
