import csv
from io import StringIO
from typing import List, Optional, Tuple

from wager_bridge.clients.journal_client import catalog_journal_client, player_journal_client
from wager_bridge.config import EnvelopeKind
from wager_bridge.journal import RECEIVED, SENT
from wager_bridge.logging_config import get_logger


logger = get_logger(__name__)

HEADER = ["correlationId", "delta", "resultingBalance", "inPlayer", "inCatalog", "catalogStatus"]


def _deltas(records: List[dict], direction: str) -> dict:
    return {
        f'{r.get("correlationId")}': r
        for r in records
        if r.get("correlationId") and r.get("kind") == EnvelopeKind.BALANCE_DELTA.value and r.get("direction") == direction
    }


def build_reconciliation_csv(player_records: List[dict], catalog_records: List[dict]) -> Tuple[str, int]:
    """
    Compare balance deltas the player sent with those the catalog received.

    A delta missing on the catalog side was lost in transit; one the catalog
    rejected never reached its mirror. Both are reported, neither repaired.
    """
    sent = _deltas(player_records, SENT)
    received = _deltas(catalog_records, RECEIVED)

    mismatches: List[tuple] = []
    for corr_id in sorted(sent.keys() | received.keys()):
        player_txn = sent.get(corr_id)
        catalog_txn = received.get(corr_id)
        if player_txn and catalog_txn and catalog_txn.get("status") == "applied":
            continue
        payload = (player_txn or catalog_txn)["payload"]
        mismatches.append((
            corr_id,
            payload.get("delta"),
            payload.get("resultingBalance"),
            player_txn is not None,
            catalog_txn is not None,
            catalog_txn.get("status") if catalog_txn else "",
        ))

    logger.info("Reconciliation complete with %s mismatches", len(mismatches))
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(HEADER)
    for row in mismatches:
        writer.writerow(row)

    return output.getvalue(), len(mismatches)


async def generate_reconciliation_csv(catalog_records: Optional[List[dict]] = None) -> Tuple[str, int]:
    player_data: List[dict] = await player_journal_client.list_journal()
    if catalog_records is None:
        catalog_records = await catalog_journal_client.list_journal()
    return build_reconciliation_csv(player_data, catalog_records)
