"""
Startup Health Probe

Polls the service's own readiness endpoint after the listener binds so
that "ready" is only signalled once a real request has succeeded.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import httpx
import structlog

logger = structlog.get_logger()

DEFAULT_RETRIES = 30
DEFAULT_INTERVAL_MS = 1000
READINESS_PATH = "/health/ready"

SleepFunc = Callable[[float], Awaitable[None]]


def readiness_url(port: int, host: str = "localhost") -> str:
    """Plain HTTP readiness URL of the locally bound listener."""
    return f"http://{host}:{port}{READINESS_PATH}"


class ProbeOutcome(str, Enum):
    """Classification of one probe round trip."""

    SUCCESS = "success"
    NON_200 = "non_200"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_BODY = "malformed_body"


@dataclass(frozen=True)
class ProbeAttempt:
    """One network round trip during startup polling."""

    attempt: int
    outcome: ProbeOutcome
    timestamp: datetime
    status_code: int | None = None
    error: str | None = None

    @property
    def healthy(self) -> bool:
        return self.outcome is ProbeOutcome.SUCCESS


class StartupProber:
    """
    Bounded, strictly sequential readiness polling.

    Each attempt completes before the next is scheduled. Non-200
    responses, transport errors and unparseable bodies are retried after
    ``interval_ms``; exhausting ``retries`` resolves ``False`` instead of
    raising. ``cancel()`` stops polling early and also resolves ``False``.
    """

    def __init__(
        self,
        url: str,
        retries: int = DEFAULT_RETRIES,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        client: httpx.AsyncClient | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Initialize startup prober.

        Args:
            url: Readiness endpoint to poll
            retries: Total number of attempts
            interval_ms: Delay between attempts in milliseconds
            client: HTTP client to reuse (one is created per run otherwise)
            sleep: Awaitable delay, replaceable for tests
        """
        if retries < 1:
            raise ValueError("retries must be at least 1")
        if interval_ms < 0:
            raise ValueError("interval_ms cannot be negative")

        self.url = url
        self.retries = retries
        self.interval_ms = interval_ms
        self.attempts: list[ProbeAttempt] = []
        self._client = client
        self._sleep = sleep
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Abort polling; a running ``wait_until_healthy`` resolves ``False``."""
        self._cancelled.set()

    async def probe_once(self, client: httpx.AsyncClient, attempt: int) -> ProbeAttempt:
        """Issue a single GET and classify the outcome."""
        now = datetime.now(UTC)
        try:
            response = await client.get(self.url)
        except httpx.TransportError as e:
            logger.info(
                "Health check attempt failed",
                attempt=attempt,
                retries=self.retries,
                error=str(e),
            )
            return ProbeAttempt(attempt, ProbeOutcome.TRANSPORT_ERROR, now, error=str(e))

        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                "Failed to parse health check response",
                attempt=attempt,
                status_code=response.status_code,
                error=str(e),
            )
            return ProbeAttempt(
                attempt,
                ProbeOutcome.MALFORMED_BODY,
                now,
                status_code=response.status_code,
                error=str(e),
            )

        logger.info("Health check response", attempt=attempt, response=body)

        if response.status_code != 200:
            logger.info(
                "Service responded with non-200 status",
                attempt=attempt,
                status_code=response.status_code,
            )
            return ProbeAttempt(
                attempt, ProbeOutcome.NON_200, now, status_code=response.status_code
            )

        return ProbeAttempt(attempt, ProbeOutcome.SUCCESS, now, status_code=200)

    async def _until_cancelled(self, awaitable: Awaitable) -> asyncio.Future | None:
        """
        Run ``awaitable`` until it finishes or ``cancel()`` is called.

        Returns the finished task, or None when cancellation won; the
        unfinished work is cancelled before returning.
        """
        task = asyncio.ensure_future(awaitable)
        canceller = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait({task, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            canceller.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task

        with contextlib.suppress(asyncio.CancelledError):
            await task
        return None

    async def _pause(self) -> None:
        """Wait one interval, returning early on cancellation."""
        await self._until_cancelled(self._sleep(self.interval_ms / 1000))

    async def _poll(self, client: httpx.AsyncClient) -> bool:
        for attempt in range(1, self.retries + 1):
            if self.cancelled:
                logger.warning("Startup probe cancelled", attempts=len(self.attempts))
                return False

            finished = await self._until_cancelled(self.probe_once(client, attempt))
            if finished is None:
                logger.warning("Startup probe cancelled during attempt", attempt=attempt)
                return False

            result = finished.result()
            self.attempts.append(result)

            if result.healthy:
                logger.info("Service is healthy and ready", attempts=attempt)
                return True

            if attempt < self.retries:
                await self._pause()

        logger.error(
            "Service failed to become healthy within the timeout period",
            attempts=len(self.attempts),
            retries=self.retries,
        )
        return False

    async def wait_until_healthy(self) -> bool:
        """
        Poll until healthy, exhausted or cancelled.

        Returns:
            True on the first healthy response, False otherwise
        """
        self.attempts = []

        if self._client is not None:
            return await self._poll(self._client)

        # No per-request timeout beyond OS/socket behaviour
        async with httpx.AsyncClient(timeout=None) as client:
            return await self._poll(client)


async def wait_for_healthy(
    label: str = "Service",
    port: int = 3000,
    environment: str | None = None,
    retries: int = DEFAULT_RETRIES,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    prober: StartupProber | None = None,
) -> bool:
    """
    Wait for ``label`` to report ready on its local readiness endpoint.

    Returns:
        True once healthy, False when the probe budget is exhausted
    """
    logger.info(f"Waiting for {label} to become healthy", environment=environment)

    prober = prober or StartupProber(
        readiness_url(port), retries=retries, interval_ms=interval_ms
    )
    healthy = await prober.wait_until_healthy()

    if not healthy:
        logger.error("Health check failed", label=label, attempts=len(prober.attempts))

    return healthy
