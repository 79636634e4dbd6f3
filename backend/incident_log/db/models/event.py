"""Event, profile and callsign models.

These tables belong to the wider platform; the log service only reads them to
resolve log number prefixes and callsigns.
"""

from sqlalchemy import Column, Date, ForeignKey, Integer, String

from incident_log.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True)
    # Older rows populate name/date instead of event_name/event_date
    event_name = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    event_date = Column(Date, nullable=True)
    date = Column(Date, nullable=True)
    event_type = Column(String(50), nullable=True)  # concert, football, festival, parade


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)  # admin, user, ...


class CallsignPosition(Base):
    __tablename__ = "callsign_positions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), nullable=False, index=True)
    callsign = Column(String(100), nullable=True)
    short_code = Column(String(20), nullable=True)


class CallsignAssignment(Base):
    __tablename__ = "callsign_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    event_id = Column(String(64), nullable=False, index=True)
    position_id = Column(Integer, ForeignKey("callsign_positions.id"), nullable=False)
