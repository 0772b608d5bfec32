"""Outbound service clients."""

from __future__ import annotations

from .example_api import ExampleApiService
from .http_client import HttpClient, HttpClientError

__all__ = ["ExampleApiService", "HttpClient", "HttpClientError"]
