import httpx

from wager_bridge.config import settings
from wager_bridge.errors import TransportError


class JournalClient:
    """Reads a surface's envelope journal over HTTP."""

    def __init__(self, base_url: str) -> None:
        self.base_url = str(base_url)
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=settings.request_timeout_seconds)

    async def list_journal(self) -> list[dict]:
        try:
            resp = await self.client.get("/journal")
        except httpx.HTTPError as exc:
            raise TransportError(f"journal request to {self.base_url} failed: {exc}") from exc
        if resp.status_code == 200:
            return resp.json()
        raise TransportError(f"journal at {self.base_url} answered {resp.status_code}: {resp.text}")


player_journal_client = JournalClient(settings.player_origin)
catalog_journal_client = JournalClient(settings.catalog_origin)
