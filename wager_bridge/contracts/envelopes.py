import uuid
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from wager_bridge.config import EnvelopeKind
from wager_bridge.schemas.payloads import BalanceDelta, ItemSelection


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class _EnvelopeBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    correlation_id: Optional[str] = Field(None, alias="correlationId")

    @property
    def kind(self) -> EnvelopeKind:
        return EnvelopeKind(self.type)  # type: ignore[attr-defined]

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SelectItemEnvelope(_EnvelopeBase):
    type: Literal["SELECT_ITEM"] = "SELECT_ITEM"
    data: ItemSelection

    @classmethod
    def from_selection(cls, selection: ItemSelection, correlation_id: Optional[str] = None) -> "SelectItemEnvelope":
        return cls(data=selection, correlation_id=correlation_id or new_correlation_id())


class BalanceDeltaEnvelope(_EnvelopeBase):
    type: Literal["BALANCE_DELTA"] = "BALANCE_DELTA"
    data: BalanceDelta

    @classmethod
    def from_delta(cls, delta: BalanceDelta, correlation_id: Optional[str] = None) -> "BalanceDeltaEnvelope":
        return cls(data=delta, correlation_id=correlation_id or new_correlation_id())


Envelope = Annotated[Union[SelectItemEnvelope, BalanceDeltaEnvelope], Field(discriminator="type")]

_envelope_adapter: TypeAdapter = TypeAdapter(Envelope)


def decode_envelope(message: Any) -> Union[SelectItemEnvelope, BalanceDeltaEnvelope]:
    """
    Validate an inbound wire message into one of the envelope kinds.

    Raises pydantic.ValidationError for anything that is not a well-formed
    envelope, including unknown ``type`` tags.
    """
    return _envelope_adapter.validate_python(message)
