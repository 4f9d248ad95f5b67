"""HTTP client for the dashboard snapshot endpoint."""

import httpx

from app.schemas.radar import SnapshotResponse


class SnapshotClient:
    """Fetches snapshots from a running Radar API."""

    def __init__(self, base_url: str, *, api_prefix: str = "/api/v1", timeout: float = 30.0):
        self.http_client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + api_prefix,
            timeout=timeout,
            headers={"Cache-Control": "no-cache"},
        )

    async def fetch(self) -> SnapshotResponse:
        response = await self.http_client.get("/articles")
        response.raise_for_status()
        return SnapshotResponse.model_validate(response.json())

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()
