"""Tests for entry-type validation and timing warnings."""

from datetime import UTC, datetime, timedelta

import pytest

from incident_log.core.exceptions import ValidationError
from incident_log.domain.entry_validation import entry_timing_warnings, validate_log_payload
from incident_log.domain.incident_types import EntryType

pytestmark = pytest.mark.unit

OCCURRED = datetime(2024, 3, 15, 19, 0, tzinfo=UTC)


def _payload(**overrides):
    payload = {
        "occurrence": "Fan collapsed in block 112",
        "action_taken": "Medics dispatched",
        "incident_type": "Medical",
        "time_of_occurrence": OCCURRED,
        "entry_type": "contemporaneous",
    }
    payload.update(overrides)
    return payload


def test_valid_contemporaneous_payload_is_returned_unchanged():
    payload = _payload()

    assert validate_log_payload(payload) is payload


@pytest.mark.parametrize("field", ["occurrence", "action_taken", "incident_type"])
def test_missing_required_text_field_is_rejected(field):
    with pytest.raises(ValidationError) as exc_info:
        validate_log_payload(_payload(**{field: None}))

    assert exc_info.value.errors == [f"Missing required fields: {field}"]


def test_blank_required_fields_are_listed_together():
    with pytest.raises(ValidationError) as exc_info:
        validate_log_payload(_payload(occurrence="  ", action_taken=""))

    assert exc_info.value.errors == ["Missing required fields: occurrence, action_taken"]


def test_missing_time_of_occurrence_is_rejected():
    with pytest.raises(ValidationError, match="time_of_occurrence is required"):
        validate_log_payload(_payload(time_of_occurrence=None))


@pytest.mark.parametrize("entry_type", [None, "", "Contemporaneous", "late"])
def test_entry_type_must_be_exact(entry_type):
    with pytest.raises(ValidationError, match="entry_type must be"):
        validate_log_payload(_payload(entry_type=entry_type))


@pytest.mark.parametrize("justification", [None, "", "   \n\t"])
def test_retrospective_without_justification_is_rejected(justification):
    with pytest.raises(ValidationError) as exc_info:
        validate_log_payload(_payload(entry_type="retrospective", retrospective_justification=justification))

    assert exc_info.value.errors == [
        "Retrospective entries require a justification explaining the delay in logging."
    ]


def test_retrospective_with_justification_passes():
    payload = _payload(entry_type="retrospective", retrospective_justification="Radio outage in the north stand")

    assert validate_log_payload(payload) is payload


def test_all_failures_are_reported_at_once():
    with pytest.raises(ValidationError) as exc_info:
        validate_log_payload({"entry_type": "retrospective"})

    assert len(exc_info.value.errors) == 3
    assert "; " in str(exc_info.value)


@pytest.mark.parametrize("priority", [None, "", "critical", "HIGH", " Low "])
def test_known_or_missing_priority_passes(priority):
    payload = _payload(priority=priority)

    assert validate_log_payload(payload) is payload


def test_unknown_priority_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_log_payload(_payload(priority="urgent"))

    assert exc_info.value.errors == ["priority must be one of: critical, high, medium, low"]


# =============================================================================
# Timing warnings
# =============================================================================


def test_prompt_contemporaneous_entry_has_no_warnings():
    timing = entry_timing_warnings(OCCURRED, OCCURRED + timedelta(minutes=5), EntryType.CONTEMPORANEOUS)

    assert timing.time_delta_minutes == 5
    assert timing.warnings == []
    assert timing.suggested_entry_type is None


def test_late_contemporaneous_entry_suggests_retrospective():
    timing = entry_timing_warnings(OCCURRED, OCCURRED + timedelta(minutes=20), "contemporaneous")

    assert timing.suggested_entry_type == EntryType.RETROSPECTIVE
    assert len(timing.warnings) == 1
    assert "20 minutes after occurrence" in timing.warnings[0]


def test_over_an_hour_adds_critical_warning():
    timing = entry_timing_warnings(OCCURRED, OCCURRED + timedelta(minutes=90), "retrospective")

    assert timing.warnings == ["Critical time delta: 90 minutes. Retrospective justification is required."]


def test_retrospective_older_than_a_day_flags_significant_delay():
    timing = entry_timing_warnings(OCCURRED, OCCURRED + timedelta(hours=25), "retrospective")

    assert any("more than 24 hours old" in warning for warning in timing.warnings)


def test_future_occurrence_is_flagged():
    timing = entry_timing_warnings(OCCURRED, OCCURRED - timedelta(minutes=3), "contemporaneous")

    assert timing.time_delta_minutes == -3
    assert timing.warnings == ["Warning: Occurrence time is in the future. Please verify the timestamp."]


def test_naive_times_are_treated_as_utc():
    timing = entry_timing_warnings(OCCURRED.replace(tzinfo=None), OCCURRED + timedelta(minutes=1), "contemporaneous")

    assert timing.time_delta_minutes == 1
