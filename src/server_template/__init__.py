"""
FastAPI Server Template

Boilerplate HTTP service wiring FastAPI with standard middleware (CORS,
compression, security headers, rate limiting, response timing, structured
logging), health check endpoints, and a thin outbound HTTP client.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("server-template")
except PackageNotFoundError:
    __version__ = "unknown"
