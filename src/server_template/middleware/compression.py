"""
Compression Middleware

gzip encoding of text-like response bodies once they reach a size threshold.
"""

from __future__ import annotations

import gzip
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

TEXT_LIKE_TYPES = frozenset(
    {
        "application/javascript",
        "application/json",
        "application/xml",
        "image/svg+xml",
    }
)


def is_compressible(content_type: str) -> bool:
    """``text/*``, ``*+json``/``*+xml`` and a few application types."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return (
        media_type.startswith("text/")
        or media_type.endswith(("+json", "+xml"))
        or media_type in TEXT_LIKE_TYPES
    )


def accepts_gzip(request: Request) -> bool:
    encodings = request.headers.get("accept-encoding", "").lower()
    return any(part.split(";")[0].strip() == "gzip" for part in encodings.split(","))


class CompressionMiddleware(BaseHTTPMiddleware):
    """
    Gzip responses for clients that accept it.

    Bodies smaller than ``min_size``, already encoded bodies and
    non-text media types pass through unchanged. A compressed body that
    isn't smaller than the original is discarded.
    """

    def __init__(self, app, min_size: int = 1024, compression_level: int = 6):
        super().__init__(app)
        self.min_size = min_size
        self.compression_level = compression_level

    @staticmethod
    async def _read_body(response: Response) -> bytes:
        chunks = [chunk async for chunk in response.body_iterator]
        return b"".join(chunks)

    @staticmethod
    def _with_body(response: Response, body: bytes, encoding: str | None = None) -> Response:
        rebuilt = Response(content=body, status_code=response.status_code)
        for key, value in response.headers.items():
            if key.lower() != "content-length":
                rebuilt.headers.append(key, value)
        rebuilt.headers["content-length"] = str(len(body))

        if encoding:
            rebuilt.headers["Content-Encoding"] = encoding
            rebuilt.headers["Vary"] = "Accept-Encoding"
        return rebuilt

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if (
            not accepts_gzip(request)
            or "content-encoding" in response.headers
            or not is_compressible(response.headers.get("content-type", ""))
        ):
            return response

        body = await self._read_body(response)
        if len(body) < self.min_size:
            return self._with_body(response, body)

        compressed = gzip.compress(body, compresslevel=self.compression_level)
        if len(compressed) >= len(body):
            return self._with_body(response, body)

        return self._with_body(response, compressed, encoding="gzip")
