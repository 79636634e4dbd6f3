"""MatchFlowService — loads match log history and derives match state from it."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_log.db.models.incident_log import IncidentLog
from incident_log.domain.clock import utc_now
from incident_log.domain.incident_types import MATCH_LOG_TYPE
from incident_log.domain.match_flow import (
    MatchLogPoint,
    MatchState,
    MatchSummary,
    derive_match_state,
    summarize_match_state,
)


class MatchFlowService:
    async def match_history(self, session: AsyncSession, event_id: str) -> list[MatchLogPoint]:
        """All match_log entries for the event, oldest occurrence first."""
        result = await session.execute(
            select(IncidentLog.incident_type, IncidentLog.time_of_occurrence, IncidentLog.match_minute)
            .where(
                IncidentLog.event_id == event_id,
                IncidentLog.type == MATCH_LOG_TYPE,
            )
            .order_by(IncidentLog.time_of_occurrence.asc(), IncidentLog.id.asc())
        )
        return [
            MatchLogPoint(incident_type=incident_type, time_of_occurrence=occurred, match_minute=minute)
            for incident_type, occurred, minute in result.all()
        ]

    async def derive_for_new_entry(
        self,
        session: AsyncSession,
        event_id: str,
        incident_type: str,
        time_of_occurrence: datetime,
    ) -> MatchState:
        history = await self.match_history(session, event_id)
        return derive_match_state(history, incident_type, time_of_occurrence)

    async def summarize(self, session: AsyncSession, event_id: str, now: datetime | None = None) -> MatchSummary:
        history = await self.match_history(session, event_id)
        return summarize_match_state(history, now or utc_now())
