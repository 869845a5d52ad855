from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from wager_bridge.config import EnvelopeKind, Surface
from wager_bridge.contracts.envelopes import BalanceDeltaEnvelope, SelectItemEnvelope
from wager_bridge.logging_config import get_logger
from wager_bridge.models import EnvelopeRecord

logger = get_logger(__name__)

SENT = "sent"
RECEIVED = "received"


def serialize_record(record: EnvelopeRecord) -> dict:
    return {
        "id": record.id,
        "surface": record.surface,
        "direction": record.direction,
        "kind": record.kind,
        "correlationId": record.correlation_id,
        "payload": record.payload,
        "status": record.status,
        "reason": record.reason,
        "createdAt": record.created_at.isoformat() if record.created_at else None,
    }


class EnvelopeJournal:
    """
    Audit trail of the envelopes one surface sent and accepted.

    Only authenticated, well-formed envelopes reach the journal; discarded
    messages are logged and nothing more.
    """

    def __init__(self, db_factory: Callable[[], Session], surface: Surface):
        self.db_factory = db_factory
        self.surface = surface

    def record(
        self,
        direction: str,
        envelope: Union[SelectItemEnvelope, BalanceDeltaEnvelope],
        status: str,
        reason: Optional[str] = None,
    ) -> int:
        db = self.db_factory()
        try:
            record = EnvelopeRecord(
                surface=self.surface.value,
                direction=direction,
                kind=envelope.type,
                correlation_id=envelope.correlation_id,
                payload=envelope.to_wire()["data"],
                status=status,
                reason=reason,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            logger.info(
                "Journaled envelope surface=%s direction=%s kind=%s correlationId=%s status=%s",
                self.surface.value,
                direction,
                envelope.type,
                envelope.correlation_id,
                status,
            )
            return record.id
        finally:
            db.close()

    def list_records(self, kind: Optional[EnvelopeKind] = None, direction: Optional[str] = None) -> List[dict]:
        db = self.db_factory()
        try:
            query = db.query(EnvelopeRecord).filter(EnvelopeRecord.surface == self.surface.value)
            if kind:
                query = query.filter(EnvelopeRecord.kind == kind.value)
            if direction:
                query = query.filter(EnvelopeRecord.direction == direction)
            return [serialize_record(r) for r in query.order_by(EnvelopeRecord.id).all()]
        finally:
            db.close()

    def clear(self) -> int:
        db = self.db_factory()
        try:
            deleted = db.query(EnvelopeRecord).filter(EnvelopeRecord.surface == self.surface.value).delete()
            db.commit()
            logger.warning("Cleared %s journal records for surface=%s", deleted, self.surface.value)
            return deleted
        finally:
            db.close()
