"""Example service showing how to call a third-party REST API."""

from __future__ import annotations

from typing import Any

import structlog

from server_template.services.http_client import HttpClient

logger = structlog.get_logger()


class ExampleApiService:
    """Users resource client built on :class:`HttpClient`."""

    def __init__(self, base_url: str, client: HttpClient | None = None) -> None:
        self.base_url = base_url
        self._client = client or HttpClient()

    async def close(self) -> None:
        await self._client.aclose()

    async def get_users(self) -> Any:
        try:
            return await self._client.get(f"{self.base_url}/users")
        except Exception as e:
            logger.error("Failed to fetch users", error=str(e))
            raise

    async def search_users(self, query: str) -> Any:
        try:
            return await self._client.get(
                f"{self.base_url}/users/search", params={"q": query}
            )
        except Exception as e:
            logger.error("Failed to search users", query=query, error=str(e))
            raise

    async def create_user(self, user_data: dict[str, Any]) -> Any:
        try:
            return await self._client.post(f"{self.base_url}/users", user_data)
        except Exception as e:
            logger.error("Failed to create user", error=str(e))
            raise

    async def update_user(self, user_id: int | str, user_data: dict[str, Any]) -> Any:
        try:
            return await self._client.put(f"{self.base_url}/users/{user_id}", user_data)
        except Exception as e:
            logger.error("Failed to update user", user_id=user_id, error=str(e))
            raise

    async def delete_user(self, user_id: int | str) -> Any:
        try:
            return await self._client.delete(f"{self.base_url}/users/{user_id}")
        except Exception as e:
            logger.error("Failed to delete user", user_id=user_id, error=str(e))
            raise

    async def get_user_profile(self, user_id: int | str, token: str) -> Any:
        try:
            return await self._client.get(
                f"{self.base_url}/users/{user_id}/profile",
                headers={"Authorization": f"Bearer {token}"},
            )
        except Exception as e:
            logger.error("Failed to fetch user profile", user_id=user_id, error=str(e))
            raise
