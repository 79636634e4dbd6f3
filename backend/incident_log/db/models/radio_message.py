"""RadioMessage model — transcribed radio traffic for an event."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from incident_log.db.base import Base


class RadioMessage(Base):
    __tablename__ = "radio_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), nullable=False, index=True)
    channel = Column(String(100), nullable=False, default="")
    from_callsign = Column(String(100), nullable=True)
    to_callsign = Column(String(100), nullable=True)
    message = Column(Text, nullable=False, default="")
    transcription = Column(Text, nullable=True)

    # Filled by radio analysis; null until analysed
    category = Column(String(20), nullable=True)  # emergency, incident, routine, coordination, other
    priority = Column(String(20), nullable=True)  # critical, high, medium, low

    incident_id = Column(Integer, ForeignKey("incident_logs.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
