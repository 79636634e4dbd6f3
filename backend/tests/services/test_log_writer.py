"""Tests for ImmutableLogWriter against a real (SQLite) store."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select

from incident_log.db.models import IncidentLog
from incident_log.services.log_writer import ImmutableLogWriter

pytestmark = pytest.mark.unit

OCCURRED = datetime(2024, 3, 15, 19, 0, tzinfo=UTC)


def _log_data(**overrides):
    data = {
        "event_id": "evt-wembley-001",
        "log_number": "WEM-20240315-001",
        "occurrence": "Fan collapsed in block 112",
        "action_taken": "Medics dispatched",
        "incident_type": "Medical",
        "priority": "high",
        "callsign_from": "A1",
        "callsign_to": "Control",
        "logged_by_callsign": "A1",
        "time_of_occurrence": OCCURRED,
        "time_logged": OCCURRED + timedelta(minutes=2),
        "entry_type": "contemporaneous",
        "status": "open",
        "is_closed": False,
    }
    data.update(overrides)
    return data


async def _count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(IncidentLog))).scalar_one()


@pytest.fixture
def writer(session_factory):
    return ImmutableLogWriter(session_factory)


@pytest.mark.asyncio
async def test_inserts_one_row_and_returns_it(writer, session_factory):
    result = await writer.create_immutable_log(_log_data(), "user-001")

    assert result.success is True
    assert result.error is None
    assert result.warnings == []
    assert result.log.id is not None
    assert result.log.log_number == "WEM-20240315-001"
    assert result.log.logged_by_user_id == "user-001"
    assert result.log.timestamp == OCCURRED
    assert result.log.time_of_occurrence == OCCURRED
    assert await _count(session_factory) == 1


@pytest.mark.asyncio
async def test_caller_cannot_set_writer_owned_fields(writer):
    result = await writer.create_immutable_log(
        _log_data(id=999, logged_by_user_id="spoofed", timestamp=OCCURRED - timedelta(days=1)),
        "user-001",
    )

    assert result.success is True
    assert result.log.id != 999
    assert result.log.logged_by_user_id == "user-001"
    assert result.log.timestamp == OCCURRED


@pytest.mark.asyncio
async def test_time_logged_defaults_to_now(writer):
    data = _log_data()
    del data["time_logged"]
    before = datetime.now(UTC)

    result = await writer.create_immutable_log(data, "user-001")

    assert result.success is True
    assert result.log.time_logged >= before - timedelta(seconds=1)


@pytest.mark.asyncio
async def test_retrospective_without_justification_is_refused(writer, session_factory):
    result = await writer.create_immutable_log(
        _log_data(entry_type="retrospective", retrospective_justification="   "),
        "user-001",
    )

    assert result.success is False
    assert "justification" in result.error
    assert await _count(session_factory) == 0


@pytest.mark.asyncio
async def test_unknown_fields_are_refused(writer, session_factory):
    result = await writer.create_immutable_log(_log_data(severity="high"), "user-001")

    assert result.success is False
    assert result.error == "Unknown log fields: severity"
    assert await _count(session_factory) == 0


@pytest.mark.asyncio
async def test_time_of_occurrence_must_be_a_datetime(writer):
    result = await writer.create_immutable_log(_log_data(time_of_occurrence="2024-03-15T19:00:00Z"), "user-001")

    assert result.success is False
    assert result.error == "time_of_occurrence must be a datetime"


@pytest.mark.asyncio
async def test_duplicate_log_number_is_a_persistence_failure(writer, session_factory):
    first = await writer.create_immutable_log(_log_data(), "user-001")
    second = await writer.create_immutable_log(_log_data(occurrence="Second report"), "user-002")

    assert first.success is True
    assert second.success is False
    assert second.error == "Failed to create log entry: IntegrityError"
    assert await _count(session_factory) == 1


@pytest.mark.asyncio
async def test_late_entry_returns_warnings_but_succeeds(writer):
    result = await writer.create_immutable_log(
        _log_data(time_logged=OCCURRED + timedelta(minutes=75)),
        "user-001",
    )

    assert result.success is True
    assert len(result.warnings) == 2


@pytest.mark.asyncio
async def test_naive_datetimes_are_stored_as_utc(writer):
    result = await writer.create_immutable_log(
        _log_data(time_of_occurrence=OCCURRED.replace(tzinfo=None)),
        "user-001",
    )

    assert result.log.time_of_occurrence == OCCURRED
    assert result.log.time_of_occurrence.tzinfo is not None
