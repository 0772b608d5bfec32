"""
Outbound HTTP client.

Thin wrapper over ``httpx.AsyncClient`` with JSON defaults and retry with
exponential backoff on transport errors and 5xx responses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_BASE = 0.1


class HttpClientError(Exception):
    """Raised when an outbound request fails after all retries."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


def _decode(response: httpx.Response) -> Any:
    """Return the JSON body, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpClient:
    """
    Async HTTP client returning decoded response bodies.

    Retries up to ``max_retries`` times with ``backoff_base * 2**attempt``
    second delays when the request fails at the transport level or the
    server answers 5xx. 4xx responses are never retried.

    Example:
        >>> async with HttpClient() as client:
        ...     users = await client.get("https://api.example.com/users")
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_RETRIES,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _backoff(self, attempt: int) -> float:
        return self._backoff_base * (2 ** attempt)

    async def request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Send a request and return its decoded body.

        Raises:
            HttpClientError: On a 4xx response, or once retries are exhausted
        """
        method = method.upper()

        for attempt in range(self._max_retries + 1):
            retries_left = attempt < self._max_retries

            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if retries_left:
                    logger.warning(
                        "HTTP request failed, retrying",
                        method=method,
                        url=url,
                        attempt=attempt + 1,
                        error=str(e),
                    )
                    await self._sleep(self._backoff(attempt))
                    continue

                logger.error("No response received", method=method, url=url, error=str(e))
                raise HttpClientError(f"No response received from {method} {url}: {e}") from e

            if response.status_code >= 500 and retries_left:
                logger.warning(
                    "HTTP server error, retrying",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                )
                await self._sleep(self._backoff(attempt))
                continue

            if response.is_error:
                body = _decode(response)
                logger.error(
                    f"API Error: {response.status_code} - {method} {url}",
                    status_code=response.status_code,
                    body=body,
                )
                raise HttpClientError(
                    f"HTTP {response.status_code} from {method} {url}",
                    status_code=response.status_code,
                    response_body=body,
                )

            return _decode(response)

        # Unreachable: the final attempt either returns or raises
        raise HttpClientError(f"Request failed: {method} {url}")

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", url, json=data if data is not None else {}, **kwargs)

    async def put(self, url: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", url, json=data if data is not None else {}, **kwargs)

    async def patch(self, url: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", url, json=data if data is not None else {}, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)
