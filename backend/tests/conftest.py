"""Shared test fixtures for all test groups.

Service tests run against a throwaway SQLite database (aiosqlite) so they
exercise real SQL, including the (event_id, log_number) unique constraint.
"""

from datetime import UTC, date, datetime

import pytest
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import incident_log.db.models  # noqa: F401
from incident_log.core.config import Settings
from incident_log.db.base import Base, build_session_factory
from incident_log.db.models import (
    CallsignAssignment,
    CallsignPosition,
    Event,
    IncidentLog,
    Profile,
    RadioMessage,
)

EVENT_ID = "evt-wembley-001"
USER_ID = "user-001"
KICK_OFF = datetime(2024, 3, 15, 19, 0, tzinfo=UTC)


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """File-backed SQLite engine with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'incidents.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def redis():
    """Provide fakeredis async client."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, database_url="sqlite+aiosqlite://", redis_url="")


@pytest.fixture
def seed(session_factory):
    """Insert rows directly: ``await seed(Event(...), Profile(...))``."""

    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed


@pytest.fixture
async def wembley_event(seed) -> Event:
    (event,) = await seed(Event(id=EVENT_ID, event_name="Wembley Cup Final", event_date=date(2024, 3, 15)))
    return event


@pytest.fixture
async def steward_profile(seed) -> Profile:
    (profile,) = await seed(Profile(id=USER_ID, first_name="Jane", last_name="Smith", role="user"))
    return profile


@pytest.fixture
async def assigned_callsign(seed, wembley_event):
    """USER_ID assigned to position "Alpha 1" (short code A1) for the event."""
    (position,) = await seed(CallsignPosition(event_id=EVENT_ID, callsign="Alpha 1", short_code="A1"))
    await seed(CallsignAssignment(user_id=USER_ID, event_id=EVENT_ID, position_id=position.id))
    return position


def make_log(**overrides) -> IncidentLog:
    """An incident_logs row with sensible defaults, for seeding history."""
    values = {
        "event_id": EVENT_ID,
        "log_number": "WEM-20240315-001",
        "occurrence": "Steward reports crowd building at gate 3",
        "action_taken": "Monitoring",
        "incident_type": "Crowd Management",
        "priority": "medium",
        "callsign_from": "A1",
        "callsign_to": "Control",
        "time_of_occurrence": KICK_OFF,
        "time_logged": KICK_OFF,
        "timestamp": KICK_OFF,
        "entry_type": "contemporaneous",
        "status": "open",
        "is_closed": False,
        "logged_by_user_id": USER_ID,
        "created_at": datetime.now(UTC),
    }
    values.update(overrides)
    return IncidentLog(**values)


def make_radio_message(**overrides) -> RadioMessage:
    values = {
        "event_id": EVENT_ID,
        "channel": "Channel 1",
        "from_callsign": "S12",
        "to_callsign": "Control",
        "message": "Medical emergency at gate 5, casualty unconscious",
        "created_at": datetime.now(UTC),
    }
    values.update(overrides)
    return RadioMessage(**values)


@pytest.fixture
def log_factory():
    return make_log


@pytest.fixture
def radio_message_factory():
    return make_radio_message
