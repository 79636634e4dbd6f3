"""Tests for amendment rules: validation, permission, replay and summary."""

from datetime import UTC, datetime, timedelta

import pytest

from incident_log.core.exceptions import ValidationError
from incident_log.domain.amendments import (
    ChangeType,
    RevisionData,
    apply_revisions,
    can_amend,
    mentions_ejection,
    summarize_revisions,
    validate_amendment_request,
)

pytestmark = pytest.mark.unit

CREATED = datetime(2024, 3, 15, 19, 0, tzinfo=UTC)


def _revision(number: int, field: str, new_value, change_type: str = "amendment", by: str = "A1") -> RevisionData:
    return RevisionData(
        revision_number=number,
        field_changed=field,
        old_value=None,
        new_value=new_value,
        change_reason="Corrected after debrief",
        change_type=change_type,
        changed_at=CREATED + timedelta(minutes=number),
        changed_by_user_id="user-001",
        changed_by_callsign=by,
    )


def test_valid_amendment_request_passes():
    validate_amendment_request("location", "Gate 4", "Steward confirmed gate number")


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationError, match='Field "log_number" cannot be amended.'):
        validate_amendment_request("log_number", "X", "Renumbering this entry")


def test_short_reason_is_rejected():
    with pytest.raises(ValidationError, match="at least 10 characters"):
        validate_amendment_request("location", "Gate 4", "typo")


def test_missing_reason_and_value_are_reported_together():
    with pytest.raises(ValidationError) as exc_info:
        validate_amendment_request("location", "  ", None)

    assert exc_info.value.errors == [
        "New value cannot be empty.",
        "Change reason is required for all amendments.",
    ]


def test_time_of_occurrence_must_be_iso():
    with pytest.raises(ValidationError, match="ISO 8601"):
        validate_amendment_request("time_of_occurrence", "quarter past seven", "Time was misheard on radio")


def test_admin_can_always_amend():
    permission = can_amend("admin", "someone-else", "admin-1", CREATED, CREATED + timedelta(days=30))

    assert permission.allowed


def test_author_can_amend_within_a_day():
    assert can_amend("user", "user-001", "user-001", CREATED, CREATED + timedelta(hours=23)).allowed


def test_author_cannot_amend_after_a_day():
    permission = can_amend("user", "user-001", "user-001", CREATED, CREATED + timedelta(hours=25))

    assert not permission.allowed
    assert "within 24 hours" in permission.reason


def test_other_users_cannot_amend():
    permission = can_amend(None, "user-001", "user-002", CREATED, CREATED)

    assert not permission.allowed
    assert "logs you created" in permission.reason


@pytest.mark.parametrize(
    "text",
    ["Male ejected from the ground", "Escorted out by police", "Subject BANNED from venue"],
)
def test_ejection_wording_is_detected(text):
    assert mentions_ejection(text)


def test_ordinary_action_is_not_ejection():
    assert not mentions_ejection("First aid given, returned to seat")


def test_revisions_replay_in_number_order():
    original = {"location": "Gate 3", "priority": "medium"}
    revisions = [_revision(2, "location", "Gate 5"), _revision(1, "location", "Gate 4")]

    current = apply_revisions(original, revisions)

    assert current == {"location": "Gate 5", "priority": "medium"}
    assert original["location"] == "Gate 3"


def test_summary_of_no_revisions():
    summary = summarize_revisions([])

    assert summary.total_revisions == 0
    assert summary.last_amended_at is None


def test_summary_reports_latest_and_change_types():
    revisions = [
        _revision(1, "location", "Gate 4", change_type=ChangeType.CORRECTION, by="A1"),
        _revision(2, "occurrence", "More detail", change_type=ChangeType.CLARIFICATION, by="B2"),
        _revision(3, "priority", "high", change_type=ChangeType.CORRECTION, by="C3"),
    ]

    summary = summarize_revisions(revisions)

    assert summary.total_revisions == 3
    assert summary.change_types == ["correction", "clarification"]
    assert summary.has_corrections and summary.has_clarifications
    assert summary.last_amended_by == "C3"
    assert summary.last_amended_at == CREATED + timedelta(minutes=3)
