"""Routing of new entries into open incidents vs auto-closed operational logs."""

from incident_log.domain.incident_types import (
    LogStatus,
    Priority,
    is_match_flow_type,
    is_operational_log_type,
)


def should_auto_close(incident_type: str, priority: str | None) -> bool:
    """True for match-flow types, operational-log types, and low priority entries."""
    return (
        is_match_flow_type(incident_type)
        or is_operational_log_type(incident_type)
        or priority == Priority.LOW
    )


def resolve_lifecycle(incident_type: str, priority: str | None) -> tuple[LogStatus, bool]:
    """Return ``(status, is_closed)`` for a new entry.

    Always overrides whatever status the caller supplied.
    """
    if should_auto_close(incident_type, priority):
        return LogStatus.LOGGED, True
    return LogStatus.OPEN, False
