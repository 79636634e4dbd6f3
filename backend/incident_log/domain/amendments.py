"""Amendment rules for incident logs.

Amendments never touch the original row. Each change is a numbered revision;
the current view of a log is the original values with revisions replayed in
order.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any

from incident_log.core.exceptions import ValidationError
from incident_log.domain.clock import as_utc

AMENDMENT_WINDOW = timedelta(hours=24)
MIN_REASON_LENGTH = 10
ADMIN_ROLE = "admin"
EJECTION_INCIDENT_TYPE = "Ejection"
EJECTION_KEYWORDS = ("ejection", "ejected", "removed from site", "kicked out", "escorted out", "banned")


class ChangeType(StrEnum):
    AMENDMENT = "amendment"  # general change to log content
    STATUS_CHANGE = "status_change"
    ESCALATION = "escalation"
    CORRECTION = "correction"  # factual error corrected
    CLARIFICATION = "clarification"  # additional context added


FIELD_LABELS: dict[str, str] = {
    "occurrence": "Occurrence Description",
    "action_taken": "Action Taken",
    "callsign_from": "Callsign From",
    "callsign_to": "Callsign To",
    "incident_type": "Incident Type",
    "priority": "Priority",
    "location": "Location",
    "time_of_occurrence": "Time of Occurrence",
    "status": "Status",
}

AMENDABLE_FIELDS = tuple(FIELD_LABELS)


@dataclass(frozen=True)
class RevisionData:
    revision_number: int
    field_changed: str
    old_value: Any
    new_value: Any
    change_reason: str
    change_type: str
    changed_at: datetime
    changed_by_user_id: str | None = None
    changed_by_callsign: str | None = None


@dataclass(frozen=True)
class AmendPermission:
    allowed: bool
    reason: str | None = None


@dataclass
class RevisionSummary:
    total_revisions: int
    change_types: list[str] = field(default_factory=list)
    has_corrections: bool = False
    has_clarifications: bool = False
    last_amended_at: datetime | None = None
    last_amended_by: str | None = None


def to_json_value(value: Any) -> Any:
    """Convert a column value into the JSON form stored on a revision."""
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def validate_amendment_request(field_changed: str, new_value: Any, change_reason: str | None) -> None:
    """Raise ValidationError listing every problem with an amendment request."""
    errors: list[str] = []

    if field_changed not in FIELD_LABELS:
        errors.append(f'Field "{field_changed}" cannot be amended.')

    if new_value is None or (isinstance(new_value, str) and not new_value.strip()):
        errors.append("New value cannot be empty.")
    elif field_changed == "time_of_occurrence" and isinstance(new_value, str):
        try:
            datetime.fromisoformat(new_value)
        except ValueError:
            errors.append("time_of_occurrence must be an ISO 8601 timestamp.")

    reason = (change_reason or "").strip()
    if not reason:
        errors.append("Change reason is required for all amendments.")
    elif len(reason) < MIN_REASON_LENGTH:
        errors.append(f"Change reason must be substantive (at least {MIN_REASON_LENGTH} characters).")

    if errors:
        raise ValidationError(errors)


def can_amend(
    role: str | None,
    logged_by_user_id: str | None,
    user_id: str,
    created_at: datetime,
    now: datetime,
) -> AmendPermission:
    """Admins may always amend; authors only within 24 hours of creating the log."""
    if role == ADMIN_ROLE:
        return AmendPermission(allowed=True)

    if logged_by_user_id != user_id:
        return AmendPermission(
            allowed=False,
            reason="You can only amend logs you created. Please contact an admin for amendments.",
        )

    if as_utc(now) - as_utc(created_at) > AMENDMENT_WINDOW:
        return AmendPermission(
            allowed=False,
            reason="You can only amend logs you created within 24 hours. Please contact an admin for amendments.",
        )

    return AmendPermission(allowed=True)


def mentions_ejection(text: Any) -> bool:
    lower = str(text).lower()
    return any(keyword in lower for keyword in EJECTION_KEYWORDS)


def apply_revisions(original: Mapping[str, Any], revisions: Sequence[RevisionData]) -> dict[str, Any]:
    """Replay revisions over the original values, in revision_number order."""
    current = dict(original)
    for revision in sorted(revisions, key=lambda r: r.revision_number):
        current[revision.field_changed] = revision.new_value
    return current


def summarize_revisions(revisions: Sequence[RevisionData]) -> RevisionSummary:
    if not revisions:
        return RevisionSummary(total_revisions=0)

    ordered = sorted(revisions, key=lambda r: r.revision_number)
    change_types = list(dict.fromkeys(r.change_type for r in ordered))
    last = ordered[-1]

    return RevisionSummary(
        total_revisions=len(ordered),
        change_types=change_types,
        has_corrections=ChangeType.CORRECTION in change_types,
        has_clarifications=ChangeType.CLARIFICATION in change_types,
        last_amended_at=last.changed_at,
        last_amended_by=last.changed_by_callsign or last.changed_by_user_id,
    )
