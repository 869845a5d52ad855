import asyncio
import random
import sys

from wager_bridge.catalog import CatalogSession
from wager_bridge.channel import EnvelopeChannel, LoopbackTransport
from wager_bridge.clients.catalog_client import StaticCatalogSource
from wager_bridge.config import settings
from wager_bridge.errors import WagerBridgeError
from wager_bridge.logging_config import get_logger
from wager_bridge.player import PlayerSession

logger = get_logger(__name__)


async def run_demo(spins: int = 5, seed: int = 7) -> int:
    """Headless catalog/player round trip over an in-process link."""
    rng = random.Random(seed)
    to_player = LoopbackTransport(auto_deliver=True)
    to_catalog = LoopbackTransport(auto_deliver=True)
    catalog_channel = EnvelopeChannel(to_player, settings.catalog_origin, settings.player_origin)
    player_channel = EnvelopeChannel(to_catalog, settings.player_origin, settings.catalog_origin)
    to_player.connect(player_channel)
    to_catalog.connect(catalog_channel)

    catalog = CatalogSession(catalog_channel, StaticCatalogSource(failure_rate=0, latency_seconds=0, rng=rng))
    player = PlayerSession(player_channel, rng=rng, settle_delay=0)

    items = await catalog.load_catalog()
    await catalog.select_item(items[0])
    await to_player.drain()

    for _ in range(spins):
        if not player.available_wagers:
            logger.info("No playable wagers left at balance=%s", player.balance)
            break
        try:
            result = await player.spin(max(player.available_wagers))
        except WagerBridgeError as exc:
            logger.warning("Spin refused: %s", exc)
            break
        await to_catalog.drain()
        logger.info(
            "wager=%s outcome=%s player=%s catalog=%s",
            result.wager,
            result.outcome,
            player.balance,
            catalog.balance,
        )
    return 0 if player.balance == catalog.balance else 1

if __name__ == "__main__":
    raise SystemExit(asyncio.run(run_demo(*map(int, sys.argv[1:3]))))
