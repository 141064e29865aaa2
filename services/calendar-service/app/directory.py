"""
Lookups against the user and pet directories.

The calendar never depends on these for correctness: they only decorate
responses with owner and pet details. Any failure yields None.
"""

import asyncio
import logging
import httpx

logger = logging.getLogger(__name__)


class DirectoryClient:
    def __init__(
        self,
        user_service_url: str | None,
        pet_service_url: str | None,
        timeout: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_service_url = user_service_url
        self.pet_service_url = pet_service_url
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.user_service_url or self.pet_service_url)

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> dict | None:
        try:
            r = await client.get(url)
            if r.status_code != 200:
                return None
            return r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[calendar-service] directory lookup failed for %s: %s", url, e)
            return None

    async def fetch_user(self, client: httpx.AsyncClient, user_id: str) -> dict | None:
        if not self.user_service_url:
            return None
        return await self._get_json(client, f"{self.user_service_url}/users/{user_id}")

    async def fetch_pets(self, client: httpx.AsyncClient, pet_ids: list[str]) -> list[dict] | None:
        if not self.pet_service_url or not pet_ids:
            return None
        found = await asyncio.gather(
            *[self._get_json(client, f"{self.pet_service_url}/pets/{pid}") for pid in pet_ids]
        )
        return [p for p in found if p]

    async def decorate(self, items: list[dict]) -> list[dict]:
        """Attach ``owner`` and ``pet_info`` to serialized entries, in place."""
        if not self.enabled or not items:
            return items

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            owners: dict[str, dict | None] = {}
            for user_id in {i["user_id"] for i in items}:
                owners[user_id] = await self.fetch_user(client, user_id)

            for item in items:
                item["owner"] = owners.get(item["user_id"])
                item["pet_info"] = await self.fetch_pets(client, item.get("pets") or [])

        return items
