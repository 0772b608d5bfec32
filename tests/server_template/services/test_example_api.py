"""Tests for the example users API service."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from server_template.services import ExampleApiService, HttpClient, HttpClientError

BASE = "https://api.example.com"


@pytest.fixture
def http_client() -> AsyncMock:
    return AsyncMock(spec=HttpClient)


@pytest.fixture
def service(http_client: AsyncMock) -> ExampleApiService:
    return ExampleApiService(BASE, client=http_client)


@pytest.mark.asyncio
async def test_get_users(service: ExampleApiService, http_client: AsyncMock) -> None:
    http_client.get.return_value = [{"id": 1}]

    assert await service.get_users() == [{"id": 1}]
    http_client.get.assert_awaited_once_with(f"{BASE}/users")


@pytest.mark.asyncio
async def test_search_users(service: ExampleApiService, http_client: AsyncMock) -> None:
    await service.search_users("ada")

    http_client.get.assert_awaited_once_with(f"{BASE}/users/search", params={"q": "ada"})


@pytest.mark.asyncio
async def test_create_and_update_user(service: ExampleApiService, http_client: AsyncMock) -> None:
    await service.create_user({"name": "Ada"})
    await service.update_user(5, {"name": "Grace"})

    http_client.post.assert_awaited_once_with(f"{BASE}/users", {"name": "Ada"})
    http_client.put.assert_awaited_once_with(f"{BASE}/users/5", {"name": "Grace"})


@pytest.mark.asyncio
async def test_delete_user(service: ExampleApiService, http_client: AsyncMock) -> None:
    await service.delete_user("abc")

    http_client.delete.assert_awaited_once_with(f"{BASE}/users/abc")


@pytest.mark.asyncio
async def test_user_profile_sends_bearer_token(
    service: ExampleApiService, http_client: AsyncMock
) -> None:
    await service.get_user_profile(3, "secret-token")

    http_client.get.assert_awaited_once_with(
        f"{BASE}/users/3/profile",
        headers={"Authorization": "Bearer secret-token"},
    )


@pytest.mark.asyncio
async def test_errors_are_reraised(service: ExampleApiService, http_client: AsyncMock) -> None:
    http_client.get.side_effect = HttpClientError("HTTP 500", status_code=500)

    with pytest.raises(HttpClientError):
        await service.get_users()


@pytest.mark.asyncio
async def test_close(service: ExampleApiService, http_client: AsyncMock) -> None:
    await service.close()

    http_client.aclose.assert_awaited_once()
