"""IncidentLog model — append-only incident log entries.

Rows are inserted by the immutable log writer and never updated through the
creation path. Amendments live in ``incident_log_revisions``.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from incident_log.db.base import Base


class IncidentLog(Base):
    __tablename__ = "incident_logs"
    __table_args__ = (UniqueConstraint("event_id", "log_number", name="uq_incident_logs_event_log_number"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), nullable=False, index=True)
    log_number = Column(String(64), nullable=False)

    # Content
    occurrence = Column(Text, nullable=False)
    action_taken = Column(Text, nullable=False)
    incident_type = Column(String(100), nullable=False)
    priority = Column(String(20), nullable=True)
    location = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)

    # Provenance
    callsign_from = Column(String(100), nullable=False, default="")
    callsign_to = Column(String(100), nullable=False, default="")
    logged_by_callsign = Column(String(100), nullable=True)
    logged_by_user_id = Column(String(64), nullable=True, index=True)

    # Timing
    time_of_occurrence = Column(DateTime(timezone=True), nullable=False, index=True)
    time_logged = Column(DateTime(timezone=True), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)  # legacy mirror of time_of_occurrence

    # Entry classification
    entry_type = Column(String(20), nullable=False, default="contemporaneous")  # contemporaneous | retrospective
    retrospective_justification = Column(Text, nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default="open")  # open | logged
    is_closed = Column(Boolean, nullable=False, default=False)

    # Match-flow extension, populated only for match-flow incident types
    type = Column(String(20), nullable=True, index=True)  # "match_log"
    category = Column(String(50), nullable=True)  # "football"
    match_minute = Column(Integer, nullable=True)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True)
    # NO updated_at -- entries are immutable (append-only)
