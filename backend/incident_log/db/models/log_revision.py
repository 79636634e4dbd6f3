"""IncidentLogRevision model — append-only amendment trail for incident logs."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from incident_log.db.base import Base

JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class IncidentLogRevision(Base):
    __tablename__ = "incident_log_revisions"
    __table_args__ = (
        UniqueConstraint("incident_log_id", "revision_number", name="uq_incident_log_revisions_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_log_id = Column(Integer, ForeignKey("incident_logs.id"), nullable=False, index=True)
    revision_number = Column(Integer, nullable=False)

    field_changed = Column(String(50), nullable=False)
    old_value = Column(JSONVariant, nullable=True)
    new_value = Column(JSONVariant, nullable=True)
    change_reason = Column(Text, nullable=False)
    change_type = Column(String(20), nullable=False)  # amendment, status_change, escalation, correction, clarification

    changed_by_user_id = Column(String(64), nullable=True)
    changed_by_callsign = Column(String(100), nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
