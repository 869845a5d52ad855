from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from wager_bridge.database import Base


class EnvelopeRecord(Base):
    __tablename__ = "envelope_journal"
    id = Column(Integer, primary_key=True)
    surface = Column(String, index=True, nullable=False)  # catalog|player
    direction = Column(String, nullable=False)  # sent|received
    kind = Column(String, nullable=False)
    correlation_id = Column(String, index=True, nullable=True)
    payload = Column(JSON, nullable=False)
    status = Column(String, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
