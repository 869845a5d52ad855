from decimal import Decimal
from typing import Annotated, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer, StrictInt, field_validator


def _to_number(value: Decimal) -> Union[int, float]:
    # JSON has no decimal type; whole amounts go out as ints
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Amount = Annotated[
    Decimal,
    Field(allow_inf_nan=False, decimal_places=2),
    PlainSerializer(_to_number, when_used="json"),
]
PositiveAmount = Annotated[Amount, Field(gt=0)]
NonNegativeAmount = Annotated[Amount, Field(ge=0)]


class Item(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: StrictInt
    name: str
    wager_options: tuple[PositiveAmount, ...] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("wagerOptions", "betAmounts"),
        serialization_alias="wagerOptions",
    )

    @field_validator("wager_options")
    @classmethod
    def _unique_options(cls, options: tuple) -> tuple:
        return tuple(dict.fromkeys(options))

    @property
    def min_wager(self) -> Decimal:
        return min(self.wager_options)


class ItemSelection(Item):
    balance_at_handoff: NonNegativeAmount = Field(
        ...,
        validation_alias=AliasChoices("balanceAtHandoff", "currentBalance"),
        serialization_alias="balanceAtHandoff",
    )

    @classmethod
    def from_item(cls, item: Item, balance: Decimal) -> "ItemSelection":
        return cls(
            id=item.id,
            name=item.name,
            wager_options=item.wager_options,
            balance_at_handoff=balance,
        )


class BalanceDelta(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    delta: Amount = Field(..., validation_alias=AliasChoices("delta", "amount"), serialization_alias="delta")
    resulting_balance: Optional[NonNegativeAmount] = Field(
        None,
        validation_alias=AliasChoices("resultingBalance", "newBalance"),
        serialization_alias="resultingBalance",
    )
