"""
Catalog session: holds the long-lived balance mirror.

Sending an item selection hands balance authority to the player surface;
absorbing a BALANCE_DELTA takes it back. While authority is handed off the
local mirror is stale and is not trusted for anything but the next handoff.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from wager_bridge.channel import EnvelopeChannel
from wager_bridge.config import EnvelopeKind, settings
from wager_bridge.contracts.envelopes import BalanceDeltaEnvelope, SelectItemEnvelope
from wager_bridge.errors import (
    CatalogUnavailable,
    InsufficientBalance,
    InsufficientFunds,
    ItemNotFound,
    SessionBusy,
    WagerBridgeError,
)
from wager_bridge.journal import RECEIVED, SENT, EnvelopeJournal
from wager_bridge.logging_config import get_logger
from wager_bridge.outcome import to_amount
from wager_bridge.schemas.payloads import BalanceDelta, Item, ItemSelection

logger = get_logger(__name__)


class CatalogSession:
    def __init__(
        self,
        channel: EnvelopeChannel,
        source,
        starting_balance: Union[Decimal, int, str, None] = None,
        allow_stale_reselect: Optional[bool] = None,
        journal: Optional[EnvelopeJournal] = None,
    ):
        self.channel = channel
        self.source = source
        self.journal = journal
        self.allow_stale_reselect = (
            settings.allow_stale_reselect if allow_stale_reselect is None else allow_stale_reselect
        )
        self.items: Dict[int, Item] = {}
        self.condition: Optional[WagerBridgeError] = None
        self._balance = to_amount(settings.starting_balance if starting_balance is None else starting_balance)
        self._has_authority = True
        channel.on_receive(self._on_balance_delta, EnvelopeKind.BALANCE_DELTA)

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def has_authority(self) -> bool:
        return self._has_authority

    async def load_catalog(self) -> List[Item]:
        try:
            items = await self.source.fetch_items()
        except CatalogUnavailable as exc:
            self.condition = exc
            logger.error("Catalog unavailable: %s", exc)
            raise
        except Exception as exc:  # noqa: BLE001
            self.condition = CatalogUnavailable(str(exc))
            logger.error("Catalog source failed: %s", exc)
            raise self.condition from exc
        self.items = {item.id: item for item in items}
        self.condition = None
        logger.info("Loaded %s catalog items", len(self.items))
        return list(self.items.values())

    async def select_item(self, item: Union[Item, int]) -> ItemSelection:
        if not isinstance(item, Item):
            if item not in self.items:
                raise ItemNotFound(item)
            item = self.items[item]
        if self._balance < item.min_wager:
            raise InsufficientBalance(
                item.min_wager,
                self._balance,
                detail=f"insufficient balance, minimum required: {item.min_wager}",
            )
        if not self._has_authority and not self.allow_stale_reselect:
            raise SessionBusy("balance is handed off to the player surface; waiting for settlement")

        selection = ItemSelection.from_item(item, self._balance)
        envelope = SelectItemEnvelope.from_selection(selection)
        if not self._has_authority:
            logger.warning("Reselecting item=%s with stale balance=%s", item.id, self._balance)
        # authority moves on send, before any delivery
        self._has_authority = False
        self.condition = None
        await self.channel.send(envelope)
        if self.journal:
            self.journal.record(SENT, envelope, status=SENT)
        logger.info("Handed off balance=%s with item=%s correlationId=%s", self._balance, item.id, envelope.correlation_id)
        return selection

    def apply_balance_delta(self, delta: BalanceDelta) -> Decimal:
        if delta.resulting_balance is not None:
            self._balance = delta.resulting_balance
        else:
            new_balance = self._balance + delta.delta
            if new_balance < 0:
                raise InsufficientFunds(delta.delta, self._balance)
            self._balance = new_balance
        self._has_authority = True
        logger.info("Absorbed balance delta=%s balance=%s", delta.delta, self._balance)
        return self._balance

    def snapshot(self) -> dict:
        return {
            "balance": self._balance,
            "authoritative": self._has_authority,
            "condition": self.condition.as_dict() if self.condition else None,
        }

    def _on_balance_delta(self, envelope: BalanceDeltaEnvelope):
        try:
            self.apply_balance_delta(envelope.data)
        except InsufficientFunds as exc:
            self.condition = exc
            logger.error(
                "Rejected balance update correlationId=%s: %s",
                envelope.correlation_id,
                exc,
            )
            if self.journal:
                self.journal.record(RECEIVED, envelope, status="rejected", reason=exc.code)
            return
        self.condition = None
        if self.journal:
            self.journal.record(RECEIVED, envelope, status="applied")
