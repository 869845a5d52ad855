import asyncio
import sys
from pathlib import Path

from wager_bridge.errors import TransportError
from wager_bridge.logging_config import get_logger
from wager_bridge.reconciliation import generate_reconciliation_csv

logger = get_logger(__name__)


async def reconcile(output_path: str = "reconciliation.csv") -> int:
    try:
        csv_text, mismatch_count = await generate_reconciliation_csv()
    except TransportError as exc:
        logger.error("Could not read journals: %s", exc)
        return 2
    Path(output_path).write_text(csv_text, newline="")
    logger.info("Wrote %s mismatches to %s", mismatch_count, output_path)
    return 1 if mismatch_count else 0

if __name__ == "__main__":
    exit_code = asyncio.run(reconcile(*sys.argv[1:2]))
    raise SystemExit(exit_code)
