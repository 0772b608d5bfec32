"""
Server Configuration

Environment-based configuration management for the server template.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ServerSettings(BaseSettings):
    """Server configuration loaded from environment variables."""

    # Application
    NODE_ENV: str = Field(default="development", description="Deployment environment")
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, description="Server port")
    SERVER_NAME: str = Field(default="FastAPI Server Template", description="Service name")
    MAX_REQUEST_SIZE: int = Field(default=102_400, description="Max request body size in bytes (100KB)")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    PRETTY_LOGGING: bool = Field(default=False, description="Human readable console logs instead of JSON")
    SILENT: bool = Field(default=False, description="Suppress all log output")
    LOG_REQUESTS: bool = Field(default=True, description="Log every HTTP request")

    # CORS Configuration
    ALLOWED_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Compression
    COMPRESSION_MIN_SIZE: int = Field(default=1024, description="Minimum body size in bytes to gzip")
    COMPRESSION_LEVEL: int = Field(default=6, description="gzip compression level 1-9")

    # Security Headers
    SECURITY_HSTS_ENABLED: bool = Field(default=True, description="Send Strict-Transport-Security")
    SECURITY_HSTS_MAX_AGE: int = Field(default=31_536_000, description="HSTS max-age in seconds")
    SECURITY_X_FRAME_OPTIONS: str = Field(default="SAMEORIGIN", description="X-Frame-Options value")
    SECURITY_CSP_ENABLED: bool = Field(default=True, description="Send Content-Security-Policy")
    SECURITY_CSP_POLICY: str = Field(
        default=(
            "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
            "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
            "object-src 'none';script-src 'self';script-src-attr 'none';"
            "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
        ),
        description="Content-Security-Policy value",
    )
    SECURITY_REFERRER_POLICY: str = Field(default="no-referrer", description="Referrer-Policy value")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    GENERAL_RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, description="General limiter window in milliseconds")
    GENERAL_RATE_LIMIT_MAX: int = Field(default=30, description="Requests per window on all routes")
    API_RATE_LIMIT_WINDOW_MS: int = Field(default=900_000, description="API limiter window in milliseconds")
    API_RATE_LIMIT_MAX: int = Field(default=100, description="Requests per window under /api")
    RATE_LIMIT_EXEMPT_PATHS: list[str] = Field(
        default=["/health", "/metrics"],
        description="Paths exempt from rate limiting",
    )

    # Monitoring
    ENABLE_METRICS: bool = Field(default=True, description="Enable Prometheus metrics")

    # Startup probe
    STARTUP_PROBE_ENABLED: bool = Field(default=True, description="Probe readiness after the listener binds")
    STARTUP_PROBE_RETRIES: int = Field(default=30, description="Readiness probe attempts before giving up")
    STARTUP_PROBE_INTERVAL_MS: int = Field(default=1000, description="Delay between probe attempts in milliseconds")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        """Whether production thresholds apply."""
        return self.NODE_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.NODE_ENV == "development"


# Global settings instance
settings = ServerSettings()
