"""LogNumberService — allocates the next human-readable log number for an event.

The sequence is ``count(existing logs) + 1``. Callers hold the per-event lock
(see core.locking) across allocate-and-insert; the (event_id, log_number)
unique constraint rejects anything that slips through.
"""

from collections.abc import Callable
from datetime import date

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from incident_log.db.models.event import Event
from incident_log.db.models.incident_log import IncidentLog
from incident_log.domain.clock import utc_now
from incident_log.domain.log_numbers import LogChannel, format_log_number

logger = structlog.get_logger(__name__)


def _utc_today() -> date:
    return utc_now().date()


class LogNumberService:
    def __init__(self, today: Callable[[], date] = _utc_today):
        self.today = today

    async def _event_label(self, session: AsyncSession, event_id: str) -> tuple[str | None, date | None]:
        """Return (name, date) for the event; (None, None) when it cannot be read."""
        try:
            event = await session.get(Event, event_id)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning("event_lookup_failed", event_id=event_id, error=str(e), error_type=type(e).__name__)
            return None, None

        if event is None:
            logger.warning("event_not_found_for_log_number", event_id=event_id)
            return None, None

        return event.event_name or event.name, event.event_date or event.date

    async def count_logs(self, session: AsyncSession, event_id: str) -> int:
        result = await session.execute(
            select(func.count()).select_from(IncidentLog).where(IncidentLog.event_id == event_id)
        )
        return result.scalar_one()

    async def allocate(self, session: AsyncSession, event_id: str, channel: LogChannel) -> str:
        """Compute the next log number for ``event_id``.

        Event name falls back to "Event" and the date to today (UTC) when the
        event row is missing or unreadable. The count query is not optional:
        its failure propagates.
        """
        event_name, event_date = await self._event_label(session, event_id)
        existing = await self.count_logs(session, event_id)
        return format_log_number(event_name, event_date, existing + 1, channel, self.today())
