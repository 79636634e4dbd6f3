"""Service providers for route handlers.

Each provider builds a service over the shared session factory and, when
Redis is configured, the per-event log number lock. Tests replace them via
``app.dependency_overrides``.
"""

from incident_log.core.locking import get_event_lock
from incident_log.db.base import get_session_factory
from incident_log.services.amendment_service import AmendmentService
from incident_log.services.log_service import IncidentLogService
from incident_log.services.radio_incident_service import RadioIncidentService


def get_log_service() -> IncidentLogService:
    return IncidentLogService(get_session_factory(), lock=get_event_lock())


def get_amendment_service() -> AmendmentService:
    return AmendmentService(get_session_factory())


def get_radio_service() -> RadioIncidentService:
    return RadioIncidentService(get_session_factory(), lock=get_event_lock())
