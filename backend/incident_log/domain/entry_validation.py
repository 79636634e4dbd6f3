"""Entry-type validation for new incident log entries.

Pure functions, no DB access:
- validate_log_payload: hard rules; raises ValidationError, never persists anything
- entry_timing_warnings: soft rules on the occurrence/logging time delta; never blocks
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from incident_log.core.exceptions import ValidationError
from incident_log.domain.clock import as_utc
from incident_log.domain.incident_types import EntryType, Priority, normalise_priority

REQUIRED_TEXT_FIELDS = ("occurrence", "action_taken", "incident_type")
PRIORITY_VALUES = tuple(p.value for p in Priority)

WARNING_MINUTES = 15
CRITICAL_MINUTES = 60
MAX_RETROSPECTIVE_HOURS = 24


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_log_payload(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Check a candidate log payload against the hard creation rules.

    Args:
        payload: Mapping with at least occurrence, action_taken, incident_type,
            time_of_occurrence, entry_type and (for retrospective entries)
            retrospective_justification

    Returns:
        The same payload, unchanged

    Raises:
        ValidationError: with every failed rule listed in ``errors``
    """
    errors: list[str] = []

    missing = [name for name in REQUIRED_TEXT_FIELDS if _is_blank(payload.get(name))]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")

    if _is_blank(payload.get("time_of_occurrence")):
        errors.append("time_of_occurrence is required")

    entry_type = payload.get("entry_type")
    if entry_type not in (EntryType.CONTEMPORANEOUS.value, EntryType.RETROSPECTIVE.value):
        errors.append("entry_type must be 'contemporaneous' or 'retrospective'")
    elif entry_type == EntryType.RETROSPECTIVE.value and _is_blank(payload.get("retrospective_justification")):
        errors.append("Retrospective entries require a justification explaining the delay in logging.")

    priority = normalise_priority(payload.get("priority"))
    if priority is not None and priority not in PRIORITY_VALUES:
        errors.append(f"priority must be one of: {', '.join(PRIORITY_VALUES)}")

    if errors:
        raise ValidationError(errors)

    return payload


@dataclass
class EntryTiming:
    """Outcome of the soft timing checks."""

    time_delta_minutes: int
    warnings: list[str] = field(default_factory=list)
    suggested_entry_type: EntryType | None = None


def entry_timing_warnings(
    time_of_occurrence: datetime,
    time_logged: datetime,
    entry_type: str,
) -> EntryTiming:
    """Compare occurrence and logging times and collect advisory warnings.

    Rules:
        - contemporaneous entry logged > 15 min late: suggest retrospective
        - any entry logged > 60 min late: critical delta
        - retrospective entry > 24 h old: significant delay
        - occurrence in the future: verify timestamp
    """
    delta = as_utc(time_logged) - as_utc(time_of_occurrence)
    delta_minutes = delta // timedelta(minutes=1)

    timing = EntryTiming(time_delta_minutes=delta_minutes)

    if delta_minutes > WARNING_MINUTES and entry_type == EntryType.CONTEMPORANEOUS:
        timing.warnings.append(
            f"Entry logged {delta_minutes} minutes after occurrence. "
            "Consider marking as 'retrospective' with justification."
        )
        timing.suggested_entry_type = EntryType.RETROSPECTIVE

    if delta_minutes > CRITICAL_MINUTES:
        timing.warnings.append(
            f"Critical time delta: {delta_minutes} minutes. Retrospective justification is required."
        )

    if delta_minutes > MAX_RETROSPECTIVE_HOURS * 60 and entry_type == EntryType.RETROSPECTIVE:
        timing.warnings.append(
            f"Entry is more than {MAX_RETROSPECTIVE_HOURS} hours old. Please justify the significant delay."
        )

    if delta < timedelta(0):
        timing.warnings.append("Warning: Occurrence time is in the future. Please verify the timestamp.")

    return timing
