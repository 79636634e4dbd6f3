"""Tests for the manual log creation pipeline (IncidentLogService)."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select

from incident_log.core.exceptions import LogNotFound, ValidationError
from incident_log.core.locking import EventLock
from incident_log.db.models import IncidentLog
from incident_log.services.log_service import IncidentLogService

pytestmark = pytest.mark.unit

EVENT_ID = "evt-wembley-001"
USER_ID = "user-001"
KICK_OFF = datetime(2024, 3, 15, 19, 0, tzinfo=UTC)


def _payload(**overrides):
    payload = {
        "occurrence": "Fan collapsed in block 112",
        "action_taken": "Medics dispatched",
        "incident_type": "Medical",
        "callsign_from": "A1",
        "callsign_to": "Control",
        "time_of_occurrence": KICK_OFF,
        "entry_type": "contemporaneous",
        "priority": "high",
    }
    payload.update(overrides)
    return payload


async def _count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(IncidentLog))).scalar_one()


@pytest.fixture
def service(session_factory):
    return IncidentLogService(session_factory)


# =============================================================================
# Validation
# =============================================================================


@pytest.mark.asyncio
async def test_missing_required_fields_raise_and_write_nothing(service, session_factory, wembley_event):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_log(EVENT_ID, _payload(occurrence="", action_taken=None), USER_ID)

    assert "occurrence" in str(exc_info.value)
    assert await _count(session_factory) == 0


@pytest.mark.asyncio
async def test_retrospective_requires_justification(service, session_factory, wembley_event):
    with pytest.raises(ValidationError):
        await service.create_log(EVENT_ID, _payload(entry_type="retrospective"), USER_ID)

    result = await service.create_log(
        EVENT_ID,
        _payload(entry_type="retrospective", retrospective_justification="Radio outage in the north stand"),
        USER_ID,
    )

    assert result.success is True
    assert result.log.entry_type == "retrospective"
    assert result.log.retrospective_justification == "Radio outage in the north stand"
    assert await _count(session_factory) == 1


@pytest.mark.asyncio
async def test_iso_string_time_of_occurrence_is_accepted(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(time_of_occurrence="2024-03-15T19:00:00Z"), USER_ID)

    assert result.success is True
    assert result.log.time_of_occurrence == KICK_OFF


@pytest.mark.asyncio
async def test_unparseable_time_of_occurrence_is_a_validation_error(service, wembley_event):
    with pytest.raises(ValidationError, match="ISO 8601"):
        await service.create_log(EVENT_ID, _payload(time_of_occurrence="seven o'clock"), USER_ID)


# =============================================================================
# Lifecycle
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("incident_type", ["Attendance", "Artist On Stage", "Accsessablity"])
async def test_operational_entries_are_closed_whatever_status_is_sent(service, wembley_event, incident_type):
    result = await service.create_log(
        EVENT_ID,
        _payload(incident_type=incident_type, status="open", priority="high"),
        USER_ID,
    )

    assert result.log.is_closed is True
    assert result.log.status == "logged"


@pytest.mark.asyncio
async def test_incident_stays_open(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(status="logged"), USER_ID)

    assert result.log.is_closed is False
    assert result.log.status == "open"


@pytest.mark.asyncio
async def test_priority_defaults_to_medium(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(priority=None), USER_ID)

    assert result.log.priority == "medium"


@pytest.mark.asyncio
async def test_priority_is_case_insensitive_and_drives_auto_close(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(incident_type="Suspicious Item", priority=" LOW "), USER_ID)

    assert result.log.priority == "low"
    assert result.log.is_closed is True
    assert result.log.status == "logged"


@pytest.mark.asyncio
async def test_unknown_priority_is_a_validation_error(service, session_factory, wembley_event):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_log(EVENT_ID, _payload(priority="urgent"), USER_ID)

    assert "priority must be one of: critical, high, medium, low" in exc_info.value.errors
    assert await _count(session_factory) == 0


# =============================================================================
# Log numbers and callsigns
# =============================================================================


@pytest.mark.asyncio
async def test_log_number_follows_existing_count(service, seed, log_factory, wembley_event):
    await seed(*[log_factory(log_number=f"WEM-20240315-{n:03d}") for n in range(1, 8)])

    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.log.log_number == "WEM-20240315-008"


@pytest.mark.asyncio
async def test_missing_event_row_uses_fallback_prefix_and_today(session_factory):
    service = IncidentLogService(session_factory)
    service.numbers.today = lambda: datetime(2024, 7, 1, tzinfo=UTC).date()

    result = await service.create_log("evt-unknown", _payload(), USER_ID)

    assert result.log.log_number == "EVE-20240701-001"


@pytest.mark.asyncio
async def test_callsign_from_assignment(service, steward_profile, assigned_callsign):
    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.log.logged_by_callsign == "Alpha 1"


@pytest.mark.asyncio
async def test_callsign_from_initials_without_assignment(service, wembley_event, steward_profile):
    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.log.logged_by_callsign == "JS"


@pytest.mark.asyncio
async def test_callsign_unknown_without_profile(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.log.logged_by_callsign == "Unknown"


# =============================================================================
# Match flow
# =============================================================================


@pytest.mark.asyncio
async def test_goal_entries_derive_score_and_minute(service, wembley_event):
    for incident_type, minutes in [("Kick-Off (First Half)", 0), ("Home Goal", 5), ("Away Goal", 10)]:
        await service.create_log(
            EVENT_ID,
            _payload(incident_type=incident_type, time_of_occurrence=KICK_OFF + timedelta(minutes=minutes)),
            USER_ID,
        )

    result = await service.create_log(
        EVENT_ID,
        _payload(incident_type="Home Goal", time_of_occurrence=KICK_OFF + timedelta(minutes=15)),
        USER_ID,
    )

    log = result.log
    assert (log.home_score, log.away_score) == (2, 1)
    assert log.match_minute == 15
    assert log.type == "match_log"
    assert log.category == "football"
    assert log.is_closed is True


@pytest.mark.asyncio
async def test_entry_after_half_time(service, wembley_event):
    for incident_type, minutes in [("Kick-Off (First Half)", 0), ("Half-Time", 45)]:
        await service.create_log(
            EVENT_ID,
            _payload(incident_type=incident_type, time_of_occurrence=KICK_OFF + timedelta(minutes=minutes)),
            USER_ID,
        )

    result = await service.create_log(
        EVENT_ID,
        _payload(incident_type="Away Goal", time_of_occurrence=KICK_OFF + timedelta(minutes=50)),
        USER_ID,
    )

    assert result.log.match_minute == 50


@pytest.mark.asyncio
async def test_non_match_entries_have_no_match_fields(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.log.type is None
    assert result.log.match_minute is None
    assert result.log.home_score is None


@pytest.mark.asyncio
async def test_match_state_summary(service, wembley_event):
    await service.create_log(EVENT_ID, _payload(incident_type="Kick-Off (First Half)"), USER_ID)
    await service.create_log(
        EVENT_ID,
        _payload(incident_type="Home Goal", time_of_occurrence=KICK_OFF + timedelta(minutes=12)),
        USER_ID,
    )

    summary = await service.match_state(EVENT_ID, now=KICK_OFF + timedelta(minutes=30))

    assert summary.phase == "First Half"
    assert summary.current_minute == 30
    assert (summary.home_score, summary.away_score) == (1, 0)


# =============================================================================
# Reads
# =============================================================================


@pytest.mark.asyncio
async def test_refetched_log_equals_returned_log(service, wembley_event):
    result = await service.create_log(EVENT_ID, _payload(location="Block 112"), USER_ID)

    fetched = await service.get_log(result.log.id)

    assert fetched == result.log


@pytest.mark.asyncio
async def test_get_missing_log_raises(service):
    with pytest.raises(LogNotFound):
        await service.get_log(12345)


# =============================================================================
# Per-event lock
# =============================================================================


@pytest.mark.asyncio
async def test_concurrent_creates_get_distinct_numbers(session_factory, redis, wembley_event):
    service = IncidentLogService(session_factory, lock=EventLock(redis, wait_timeout=5.0))

    results = await asyncio.gather(
        *[service.create_log(EVENT_ID, _payload(occurrence=f"Report {n}"), USER_ID) for n in range(3)]
    )

    assert all(result.success for result in results)
    assert sorted(result.log.log_number for result in results) == [
        "WEM-20240315-001",
        "WEM-20240315-002",
        "WEM-20240315-003",
    ]
    assert await EventLock(redis).holder(EVENT_ID) is None


@pytest.mark.asyncio
async def test_lock_timeout_is_a_failed_result(session_factory, redis, wembley_event):
    lock = EventLock(redis, wait_timeout=0.1)
    await lock.acquire(EVENT_ID, "another-writer")
    service = IncidentLogService(session_factory, lock=lock)

    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.success is False
    assert "log number lock" in result.error
    assert await _count(session_factory) == 0


@pytest.mark.asyncio
async def test_redis_outage_is_a_failed_result(session_factory, wembley_event):
    client = AsyncMock()
    client.set.side_effect = RedisConnectionError("Connection refused")
    service = IncidentLogService(session_factory, lock=EventLock(client))

    result = await service.create_log(EVENT_ID, _payload(), USER_ID)

    assert result.success is False
    assert result.error == "Log number lock unavailable: ConnectionError"
    assert await _count(session_factory) == 0
