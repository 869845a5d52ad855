"""
Outcome engine for a single slot machine spin.

The multiplier is a uniform integer in ``[min_multiplier, max_multiplier]``
read as hundredths of the wager, so the defaults (-100, 200) bound every
result to ``[-wager, 2 * wager]``. Results are rounded to the cent with
``ROUND_HALF_UP`` (ties away from zero).
"""
import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from wager_bridge.config import MULTIPLIER_SCALE, settings
from wager_bridge.errors import InvalidWager

CENT = Decimal("0.01")

_system_random = random.SystemRandom()


def to_amount(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_valid_wager(wager: Decimal) -> bool:
    return wager.is_finite() and wager > 0 and wager == wager.quantize(CENT)


def compute_outcome(
    wager: Union[Decimal, int, float, str],
    rng: Optional[random.Random] = None,
    min_multiplier: Optional[int] = None,
    max_multiplier: Optional[int] = None,
) -> Decimal:
    wager = to_amount(wager)
    if not is_valid_wager(wager):
        raise InvalidWager(wager, detail=f"wager must be a positive whole-cent amount, got {wager}")
    low = settings.min_multiplier if min_multiplier is None else min_multiplier
    high = settings.max_multiplier if max_multiplier is None else max_multiplier
    multiplier = (rng or _system_random).randint(low, high)
    return round2(wager * multiplier / MULTIPLIER_SCALE)


class OutcomeEngine:
    def __init__(self, item_id: int, name: str, rng: Optional[random.Random] = None):
        self.item_id = item_id
        self.name = name
        self.rng = rng or _system_random

    def compute_outcome(self, wager: Union[Decimal, int, float, str]) -> Decimal:
        return compute_outcome(wager, rng=self.rng)

    @staticmethod
    def is_valid_wager(wager: Union[Decimal, int, float, str]) -> bool:
        return is_valid_wager(to_amount(wager))

    def __repr__(self) -> str:
        return f"OutcomeEngine(item_id={self.item_id!r}, name={self.name!r})"
