"""
Player session: local balance mirror plus the wager/outcome state machine.

    IDLE -> ITEM_LOADED -> WAGER_SELECTED -> SPINNING -> SETTLED -> ITEM_LOADED

The mirror is set from ``balanceAtHandoff`` when a selection arrives and is
only ever changed by this session's own spin path. Every settled spin sends
exactly one BALANCE_DELTA back to the catalog.
"""

import asyncio
import random
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Union

from wager_bridge.channel import EnvelopeChannel
from wager_bridge.config import EnvelopeKind, settings
from wager_bridge.contracts.envelopes import BalanceDeltaEnvelope, SelectItemEnvelope
from wager_bridge.errors import InsufficientBalance, InvalidWager, SessionBusy, WagerBridgeError
from wager_bridge.journal import RECEIVED, SENT, EnvelopeJournal
from wager_bridge.logging_config import get_logger
from wager_bridge.outcome import OutcomeEngine, to_amount
from wager_bridge.schemas.payloads import BalanceDelta, ItemSelection

logger = get_logger(__name__)


class PlayerState(str, Enum):
    IDLE = "idle"
    ITEM_LOADED = "item_loaded"
    WAGER_SELECTED = "wager_selected"
    SPINNING = "spinning"
    SETTLED = "settled"


@dataclass
class WagerState:
    selected_amount: Optional[Decimal] = None
    committed: bool = False


@dataclass(frozen=True)
class SpinResult:
    wager: Decimal
    outcome: Decimal
    balance: Decimal
    correlation_id: Optional[str] = None


class PlayerSession:
    def __init__(
        self,
        channel: EnvelopeChannel,
        rng: Optional[random.Random] = None,
        settle_delay: Optional[float] = None,
        journal: Optional[EnvelopeJournal] = None,
    ):
        self.channel = channel
        self.rng = rng
        self.settle_delay = settings.settle_delay_seconds if settle_delay is None else settle_delay
        self.journal = journal
        self.state = PlayerState.IDLE
        self.item: Optional[ItemSelection] = None
        self.wager = WagerState()
        self.condition: Optional[WagerBridgeError] = None
        self._balance = Decimal("0")
        self._available: List[Decimal] = []
        self._engine: Optional[OutcomeEngine] = None
        channel.on_receive(self._on_select_item, EnvelopeKind.SELECT_ITEM)

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def available_wagers(self) -> List[Decimal]:
        return list(self._available)

    @property
    def can_spin(self) -> bool:
        return self.state == PlayerState.WAGER_SELECTED and bool(self._available)

    def load_selection(self, selection: ItemSelection):
        if self.state == PlayerState.SPINNING:
            raise SessionBusy(f"selection of item {selection.id} arrived mid-spin")
        self.item = selection
        self._engine = OutcomeEngine(selection.id, selection.name, rng=self.rng)
        self._balance = selection.balance_at_handoff
        self.wager = WagerState()
        self.state = PlayerState.ITEM_LOADED
        self._refresh_available()
        logger.info(
            "Loaded item id=%s name=%s balance=%s playable=%s",
            selection.id,
            selection.name,
            self._balance,
            [str(a) for a in self._available],
        )

    def select_wager(self, amount: Union[Decimal, int, float, str]) -> Decimal:
        if self.state == PlayerState.SPINNING:
            raise SessionBusy("cannot change the wager while spinning")
        if self.item is None:
            raise InvalidWager(detail="no item loaded")
        try:
            amount = to_amount(amount)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidWager(detail=f"invalid wager amount: {amount!r}") from exc
        if not amount.is_finite() or amount <= 0 or amount not in self.item.wager_options:
            raise InvalidWager(amount)
        if amount > self._balance:
            self.wager = WagerState()
            self.state = PlayerState.ITEM_LOADED
            raise InsufficientBalance(amount, self._balance)
        self.wager = WagerState(selected_amount=amount)
        self.state = PlayerState.WAGER_SELECTED
        return amount

    async def spin(self, amount: Union[Decimal, int, float, str, None] = None) -> SpinResult:
        if self.state == PlayerState.SPINNING:
            raise SessionBusy("a spin is already in progress")
        if amount is not None:
            self.select_wager(amount)
        wager = self.wager.selected_amount
        if self.state != PlayerState.WAGER_SELECTED or wager is None:
            raise InvalidWager(detail="select a wager before spinning")
        if wager > self._balance:
            self.wager = WagerState()
            self.state = PlayerState.ITEM_LOADED
            self._refresh_available()
            raise InsufficientBalance(wager, self._balance)

        self.state = PlayerState.SPINNING
        self.wager.committed = True
        self._balance -= wager
        try:
            outcome = self._engine.compute_outcome(wager)
            await asyncio.sleep(self.settle_delay)
        except BaseException:
            self._balance += wager
            self.wager = WagerState()
            self.state = PlayerState.ITEM_LOADED
            self._refresh_available()
            raise
        self._balance += wager + outcome
        self.state = PlayerState.SETTLED
        logger.info("Settled spin item=%s wager=%s outcome=%s balance=%s", self.item.id, wager, outcome, self._balance)

        envelope = BalanceDeltaEnvelope.from_delta(BalanceDelta(delta=outcome, resulting_balance=self._balance))
        self.wager = WagerState()
        self.state = PlayerState.ITEM_LOADED
        self._refresh_available()
        await self.channel.send(envelope)
        if self.journal:
            self.journal.record(SENT, envelope, status=SENT)
        return SpinResult(wager=wager, outcome=outcome, balance=self._balance, correlation_id=envelope.correlation_id)

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "balance": self._balance,
            "item": self.item.model_dump(mode="json", by_alias=True) if self.item else None,
            "availableWagers": self._available,
            "selectedWager": self.wager.selected_amount,
            "committed": self.wager.committed,
            "canSpin": self.can_spin,
            "condition": self.condition.as_dict() if self.condition else None,
        }

    def _refresh_available(self):
        options = self.item.wager_options if self.item else ()
        self._available = [a for a in options if a <= self._balance]
        self.condition = None
        if self.item and not self._available:
            self.condition = InsufficientBalance(
                min(options),
                self._balance,
                detail=f"balance {self._balance} is below every wager on item {self.item.id}",
            )
            logger.warning("No playable wagers item=%s balance=%s", self.item.id, self._balance)

    def _on_select_item(self, envelope: SelectItemEnvelope):
        try:
            self.load_selection(envelope.data)
        except SessionBusy as exc:
            self.condition = exc
            logger.warning("Ignored item selection correlationId=%s: %s", envelope.correlation_id, exc)
            if self.journal:
                self.journal.record(RECEIVED, envelope, status="ignored", reason=exc.code)
            return
        if self.journal:
            self.journal.record(RECEIVED, envelope, status="applied")
