"""Tests for the startup readiness prober."""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from server_template.monitoring.startup import (
    ProbeOutcome,
    StartupProber,
    readiness_url,
    wait_for_healthy,
)

URL = "http://localhost:3000/health/ready"
READY_BODY = {"status": "ok", "timestamp": "2024-01-01T00:00:00.000Z", "checks": {"cpu": True}}


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def elapsed(self) -> float:
        return sum(self.delays)


def test_readiness_url() -> None:
    assert readiness_url(3000) == URL
    assert readiness_url(8080) == "http://localhost:8080/health/ready"


def test_rejects_invalid_parameters() -> None:
    with pytest.raises(ValueError):
        StartupProber(URL, retries=0)
    with pytest.raises(ValueError):
        StartupProber(URL, interval_ms=-1)


@pytest.mark.asyncio
@respx.mock
async def test_healthy_on_first_attempt() -> None:
    route = respx.get(URL).mock(return_value=httpx.Response(200, json=READY_BODY))
    sleep = FakeSleep()
    prober = StartupProber(URL, retries=5, interval_ms=500, sleep=sleep)

    assert await prober.wait_until_healthy() is True

    assert route.call_count == 1
    assert sleep.delays == []
    assert [a.outcome for a in prober.attempts] == [ProbeOutcome.SUCCESS]
    assert prober.attempts[0].status_code == 200


@pytest.mark.asyncio
@respx.mock
async def test_exhausts_budget_on_non_200() -> None:
    route = respx.get(URL).mock(
        return_value=httpx.Response(503, json={"status": "degraded"})
    )
    sleep = FakeSleep()
    prober = StartupProber(URL, retries=5, interval_ms=500, sleep=sleep)

    assert await prober.wait_until_healthy() is False

    assert route.call_count == 5
    assert len(prober.attempts) == 5
    assert all(a.outcome is ProbeOutcome.NON_200 for a in prober.attempts)
    assert [a.attempt for a in prober.attempts] == [1, 2, 3, 4, 5]
    # No wait after the final attempt
    assert sleep.delays == [0.5, 0.5, 0.5, 0.5]
    assert sleep.elapsed <= 5 * 0.5


@pytest.mark.asyncio
@respx.mock
async def test_retries_after_transport_error() -> None:
    route = respx.get(URL).mock(
        side_effect=[
            httpx.ConnectError("Connection refused"),
            httpx.ConnectError("Connection refused"),
            httpx.Response(200, json=READY_BODY),
        ]
    )
    sleep = FakeSleep()
    prober = StartupProber(URL, retries=30, interval_ms=1000, sleep=sleep)

    assert await prober.wait_until_healthy() is True

    assert route.call_count == 3
    assert [a.outcome for a in prober.attempts] == [
        ProbeOutcome.TRANSPORT_ERROR,
        ProbeOutcome.TRANSPORT_ERROR,
        ProbeOutcome.SUCCESS,
    ]
    assert "Connection refused" in prober.attempts[0].error
    assert sleep.delays == [1.0, 1.0]


@pytest.mark.asyncio
@respx.mock
async def test_unparseable_body_is_retried() -> None:
    respx.get(URL).mock(
        side_effect=[
            httpx.Response(200, text="<html>starting</html>"),
            httpx.Response(200, json=READY_BODY),
        ]
    )
    prober = StartupProber(URL, retries=3, interval_ms=10, sleep=FakeSleep())

    assert await prober.wait_until_healthy() is True
    assert prober.attempts[0].outcome is ProbeOutcome.MALFORMED_BODY
    assert prober.attempts[1].healthy


@pytest.mark.asyncio
@respx.mock
async def test_transport_errors_exhaust_without_raising() -> None:
    respx.get(URL).mock(side_effect=httpx.ConnectError("Connection refused"))
    prober = StartupProber(URL, retries=3, interval_ms=10, sleep=FakeSleep())

    assert await prober.wait_until_healthy() is False
    assert len(prober.attempts) == 3


@pytest.mark.asyncio
@respx.mock
async def test_cancel_between_attempts() -> None:
    route = respx.get(URL).mock(return_value=httpx.Response(503, json={"status": "degraded"}))
    prober = StartupProber(URL, retries=10, interval_ms=100)

    async def cancelling_sleep(seconds: float) -> None:
        prober.cancel()

    prober._sleep = cancelling_sleep

    assert await prober.wait_until_healthy() is False
    assert route.call_count == 1
    assert prober.cancelled


@pytest.mark.asyncio
@respx.mock
async def test_cancel_interrupts_wait() -> None:
    respx.get(URL).mock(return_value=httpx.Response(503, json={"status": "degraded"}))
    prober = StartupProber(URL, retries=10, interval_ms=60_000)

    task = asyncio.create_task(prober.wait_until_healthy())
    await asyncio.sleep(0.05)
    prober.cancel()

    assert await asyncio.wait_for(task, timeout=2) is False
    assert len(prober.attempts) == 1


@pytest.mark.asyncio
async def test_cancel_aborts_hanging_request() -> None:
    request_started = asyncio.Event()
    request_aborted = asyncio.Event()

    async def never_answers(request: httpx.Request) -> httpx.Response:
        request_started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            request_aborted.set()
            raise
        return httpx.Response(200, json=READY_BODY)

    async with httpx.AsyncClient(transport=httpx.MockTransport(never_answers)) as client:
        prober = StartupProber(URL, retries=3, interval_ms=10, client=client, sleep=FakeSleep())
        task = asyncio.create_task(prober.wait_until_healthy())

        await asyncio.wait_for(request_started.wait(), timeout=2)
        prober.cancel()

        assert await asyncio.wait_for(task, timeout=2) is False
        assert request_aborted.is_set()
        assert prober.attempts == []


@pytest.mark.asyncio
@respx.mock
async def test_uses_provided_client() -> None:
    respx.get(URL).mock(return_value=httpx.Response(200, json=READY_BODY))

    async with httpx.AsyncClient() as client:
        prober = StartupProber(URL, retries=1, client=client, sleep=FakeSleep())
        assert await prober.wait_until_healthy() is True
        assert not client.is_closed


@pytest.mark.asyncio
@respx.mock
async def test_wait_for_healthy_reports_result() -> None:
    respx.get("http://localhost:4000/health/ready").mock(
        return_value=httpx.Response(200, json=READY_BODY)
    )

    assert await wait_for_healthy("Test Service", port=4000, retries=2, interval_ms=0) is True


@pytest.mark.asyncio
@respx.mock
async def test_wait_for_healthy_returns_false_on_timeout() -> None:
    respx.get(URL).mock(return_value=httpx.Response(503, json={"status": "degraded"}))
    prober = StartupProber(URL, retries=2, interval_ms=0, sleep=FakeSleep())

    assert await wait_for_healthy(prober=prober) is False
