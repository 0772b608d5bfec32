"""
CORS Middleware

Cross-Origin Resource Sharing configuration for browser clients.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server_template.config import settings


def setup_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the server.

    Any origin is allowed by default. Credentials are only allowed when
    every origin is listed explicitly.
    """
    allow_any = "*" in settings.ALLOWED_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=not allow_any,
        allow_methods=["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Trace-ID", "X-Request-ID", "X-Response-Time"],
    )
