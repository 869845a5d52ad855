import asyncio
import random
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from wager_bridge.config import settings
from wager_bridge.errors import CatalogUnavailable
from wager_bridge.logging_config import get_logger
from wager_bridge.schemas.payloads import Item

logger = get_logger(__name__)

_items_adapter = TypeAdapter(List[Item])

DEFAULT_MACHINES = [
    {"id": 1, "name": "Slot Machine A", "wagerOptions": [1, 5, 10, 20]},
    {"id": 2, "name": "Slot Machine B", "wagerOptions": [2, 5, 25, 50]},
    {"id": 3, "name": "Slot Machine C", "wagerOptions": [5, 10, 25, 100]},
]


class StaticCatalogSource:
    """Built-in machine list served after a simulated network delay."""

    def __init__(
        self,
        machines: Optional[List[dict]] = None,
        failure_rate: Optional[float] = None,
        latency_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        self.items = _items_adapter.validate_python(machines if machines is not None else DEFAULT_MACHINES)
        self.failure_rate = failure_rate if failure_rate is not None else settings.catalog_failure_rate
        self.latency_seconds = latency_seconds if latency_seconds is not None else settings.catalog_latency_seconds
        self.rng = rng or random.Random()

    async def fetch_items(self) -> List[Item]:
        logger.info("Fetching slot machines from static catalog")
        await asyncio.sleep(self.latency_seconds)
        if self.rng.random() < self.failure_rate:
            raise CatalogUnavailable("error loading slot machines")
        return list(self.items)


class HttpCatalogSource:
    def __init__(self, url: str, timeout: Optional[float] = None) -> None:
        self.url = str(url)
        self.client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.request_timeout_seconds
        )

    async def fetch_items(self) -> List[Item]:
        try:
            resp = await self.client.get(self.url)
        except httpx.HTTPError as exc:
            raise CatalogUnavailable(f"catalog request error: {exc}") from exc
        if resp.status_code != 200:
            raise CatalogUnavailable(f"catalog answered {resp.status_code}")
        try:
            return _items_adapter.validate_python(resp.json())
        except (ValueError, ValidationError) as exc:
            raise CatalogUnavailable(f"malformed catalog: {exc}") from exc


def build_catalog_source():
    if settings.catalog_source_url:
        return HttpCatalogSource(str(settings.catalog_source_url))
    return StaticCatalogSource()
