"""Tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from server_template.logging_config import configure_logging


def test_json_output(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="INFO")

    structlog.get_logger().info("Server is listening", port=3000)

    event = json.loads(capsys.readouterr().out.strip())
    assert event["event"] == "Server is listening"
    assert event["port"] == 3000
    assert event["level"] == "info"
    assert event["timestamp"].endswith("Z")


def test_level_filtering(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="WARNING")
    logger = structlog.get_logger()

    logger.info("dropped")
    logger.warning("kept")

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["event"] == "kept"


def test_context_variables_merged(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()
    structlog.contextvars.bind_contextvars(trace_id="abc")
    try:
        structlog.get_logger().info("Request completed")
    finally:
        structlog.contextvars.clear_contextvars()

    assert json.loads(capsys.readouterr().out.strip())["trace_id"] == "abc"


def test_silent_drops_everything(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(silent=True)

    structlog.get_logger().critical("not shown")

    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("pretty", [False, True])
def test_silent_overrides_level(capsys: pytest.CaptureFixture[str], pretty: bool) -> None:
    configure_logging(level="DEBUG", pretty=pretty, silent=True)
    logger = structlog.get_logger()

    logger.debug("not shown")
    logger.error("not shown either", error="boom")

    assert capsys.readouterr().out == ""


def test_pretty_output(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(pretty=True)

    structlog.get_logger().info("Starting server", name="demo")

    out = capsys.readouterr().out
    assert "Starting server" in out
    assert "demo" in out


def test_unknown_level_falls_back_to_info(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="LOUD")
    logger = structlog.get_logger()

    logger.debug("dropped")
    logger.info("kept")

    assert "kept" in capsys.readouterr().out
