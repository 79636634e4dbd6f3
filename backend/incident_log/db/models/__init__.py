"""Re-export all models so Base.metadata sees them."""

from incident_log.db.models.event import CallsignAssignment, CallsignPosition, Event, Profile
from incident_log.db.models.incident_log import IncidentLog
from incident_log.db.models.log_revision import IncidentLogRevision
from incident_log.db.models.radio_message import RadioMessage

__all__ = [
    "CallsignAssignment",
    "CallsignPosition",
    "Event",
    "IncidentLog",
    "IncidentLogRevision",
    "Profile",
    "RadioMessage",
]
