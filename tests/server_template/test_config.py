"""Tests for environment-based settings."""

from __future__ import annotations

import pytest

from server_template.config import ServerSettings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("NODE_ENV", "PORT", "LOG_LEVEL", "ALLOWED_ORIGINS", "RATE_LIMIT_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = ServerSettings(_env_file=None)

    assert settings.NODE_ENV == "development"
    assert settings.PORT == 3000
    assert settings.MAX_REQUEST_SIZE == 100 * 1024
    assert settings.ALLOWED_ORIGINS == ["*"]
    assert settings.GENERAL_RATE_LIMIT_WINDOW_MS == 60_000
    assert settings.GENERAL_RATE_LIMIT_MAX == 30
    assert settings.API_RATE_LIMIT_WINDOW_MS == 900_000
    assert settings.API_RATE_LIMIT_MAX == 100
    assert settings.STARTUP_PROBE_RETRIES == 30
    assert settings.STARTUP_PROBE_INTERVAL_MS == 1000
    assert settings.is_development
    assert not settings.is_production


def test_environment_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NODE_ENV", "production")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("ALLOWED_ORIGINS", '["https://example.com"]')
    clean_env.setenv("RATE_LIMIT_ENABLED", "false")

    settings = ServerSettings(_env_file=None)

    assert settings.is_production
    assert settings.PORT == 8080
    assert settings.ALLOWED_ORIGINS == ["https://example.com"]
    assert settings.RATE_LIMIT_ENABLED is False


def test_names_are_case_sensitive(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("port", "9999")

    assert ServerSettings(_env_file=None).PORT == 3000
