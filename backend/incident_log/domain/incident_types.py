"""Closed vocabularies for incident log entries.

Incident types are an open string on the row, but the two sets that drive
behaviour (match-flow types and operational-log types) are closed enums here.
Membership is exact and case-sensitive because stored rows use these spellings.
"""

from enum import StrEnum


class EntryType(StrEnum):
    CONTEMPORANEOUS = "contemporaneous"
    RETROSPECTIVE = "retrospective"


class LogStatus(StrEnum):
    OPEN = "open"
    LOGGED = "logged"


class Priority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def normalise_priority(value: str | None) -> str | None:
    """Lower-case and strip a client-supplied priority; None when blank."""
    if value is None:
        return None
    return str(value).strip().lower() or None


class MatchFlowType(StrEnum):
    """Football match events that feed the derived score and match clock."""

    KICK_OFF_FIRST_HALF = "Kick-Off (First Half)"
    HALF_TIME = "Half-Time"
    KICK_OFF_SECOND_HALF = "Kick-Off (Second Half)"
    FULL_TIME = "Full-Time"
    HOME_GOAL = "Home Goal"
    AWAY_GOAL = "Away Goal"


class OperationalLogType(StrEnum):
    """Informational entry types that are closed as soon as they are logged."""

    ATTENDANCE = "Attendance"
    ARTIST_ON_STAGE = "Artist On Stage"
    ARTIST_OFF_STAGE = "Artist Off Stage"
    TIMINGS = "Timings"
    EVENT_TIMING = "Event Timing"
    SIT_REP = "Sit Rep"
    STAFFING = "Staffing"
    ACCREDITATION = "Accreditation"
    ACCESSIBILITY = "Accessibility"


# Spellings found in stored rows that must keep their behaviour.
LEGACY_OPERATIONAL_ALIASES: dict[str, OperationalLogType] = {
    "Accsessablity": OperationalLogType.ACCESSIBILITY,
}

MATCH_LOG_TYPE = "match_log"
MATCH_LOG_CATEGORY = "football"

_MATCH_FLOW_BY_VALUE = {member.value: member for member in MatchFlowType}
_OPERATIONAL_BY_VALUE = {member.value: member for member in OperationalLogType}


def parse_match_flow_type(incident_type: str | None) -> MatchFlowType | None:
    """Return the MatchFlowType for an exact incident type string, else None."""
    if incident_type is None:
        return None
    return _MATCH_FLOW_BY_VALUE.get(incident_type)


def is_match_flow_type(incident_type: str | None) -> bool:
    return parse_match_flow_type(incident_type) is not None


def parse_operational_type(incident_type: str | None) -> OperationalLogType | None:
    """Return the OperationalLogType for an incident type, honouring legacy spellings."""
    if incident_type is None:
        return None
    if incident_type in _OPERATIONAL_BY_VALUE:
        return _OPERATIONAL_BY_VALUE[incident_type]
    return LEGACY_OPERATIONAL_ALIASES.get(incident_type)


def is_operational_log_type(incident_type: str | None) -> bool:
    return parse_operational_type(incident_type) is not None
