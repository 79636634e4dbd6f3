"""Radio-to-incident bridge.

Turns classified radio traffic into incident log entries through the same
immutable writer as manual logs, with keyword-overlap duplicate suppression.

Flow for one message:
  1. analyzer says not incident-worthy  -> no incident
  2. message already linked             -> no incident, existing id returned
  3. recent incident with same keywords -> message linked to it, no incident
  4. otherwise                          -> allocate radio log number, write,
                                           back-link the message

Steps 3 and 4 run under the per-event lock.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incident_log.core.config import Settings, get_settings
from incident_log.core.exceptions import RadioMessageNotFound, ValidationError
from incident_log.core.locking import EventLock, event_lock_scope
from incident_log.db.models.incident_log import IncidentLog
from incident_log.db.models.radio_message import RadioMessage
from incident_log.domain.callsigns import RADIO_CALLSIGN
from incident_log.domain.classification import resolve_lifecycle
from incident_log.domain.clock import utc_now
from incident_log.domain.duplicates import RecentIncident, find_duplicate
from incident_log.domain.entry_validation import validate_log_payload
from incident_log.domain.incident_types import EntryType
from incident_log.domain.log_numbers import LogChannel
from incident_log.domain.radio_analysis import (
    KeywordRadioAnalyzer,
    RadioAnalyzer,
    RadioCategory,
    RadioMessageData,
)
from incident_log.services.callsign_service import CallsignService
from incident_log.services.log_number_service import LogNumberService
from incident_log.services.log_writer import ImmutableLogWriter

logger = structlog.get_logger(__name__)

NOT_INCIDENT_WORTHY = "Message does not meet incident creation criteria"
ALREADY_LINKED = "Incident already linked to this message"
DUPLICATE_LINKED = "Duplicate incident detected - linked to existing incident"

# Incident types whose source message is re-categorised as an emergency
_EMERGENCY_INCIDENT_TYPES = ("Medical", "Fire")


@dataclass
class RadioIncidentResult:
    incident_created: bool
    incident_id: int | None = None
    reason: str | None = None
    error: str | None = None


@dataclass
class RadioProcessResult:
    analyzed: bool
    category: str | None = None
    priority: str | None = None
    incident_created: bool | None = None
    incident_id: int | None = None
    reason: str | None = None


class RadioIncidentService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        writer: ImmutableLogWriter | None = None,
        analyzer: RadioAnalyzer | None = None,
        numbers: LogNumberService | None = None,
        callsigns: CallsignService | None = None,
        lock: EventLock | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.writer = writer or ImmutableLogWriter(session_factory)
        self.analyzer = analyzer or KeywordRadioAnalyzer()
        self.numbers = numbers or LogNumberService()
        self.callsigns = callsigns or CallsignService()
        self.lock = lock
        self.settings = settings or get_settings()
        self.clock = clock

    async def get_message(self, message_id: int) -> RadioMessageData:
        async with self.session_factory() as session:
            row = await session.get(RadioMessage, message_id)
            if row is None:
                raise RadioMessageNotFound(message_id)
            return RadioMessageData.from_row(row)

    async def _update_message(self, message_id: int, **values: Any) -> bool:
        """Write ``values`` onto the radio message row. Failures are logged, not raised."""
        try:
            async with self.session_factory() as session:
                await session.execute(update(RadioMessage).where(RadioMessage.id == message_id).values(**values))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(
                "radio_message_update_failed",
                message_id=message_id,
                fields=sorted(values),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True

    async def check_for_duplicate_incident(self, event_id: str, message_text: str) -> int | None:
        """Id of a recent incident the message repeats, or None.

        Candidates are the event's most recently created incidents inside the
        configured window. A failed lookup is treated as "no duplicate".
        """
        window_start = self.clock() - timedelta(minutes=self.settings.duplicate_window_minutes)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(IncidentLog.id, IncidentLog.occurrence)
                    .where(
                        IncidentLog.event_id == event_id,
                        IncidentLog.created_at >= window_start,
                    )
                    .order_by(IncidentLog.created_at.desc(), IncidentLog.id.desc())
                    .limit(self.settings.duplicate_candidate_limit)
                )
                recent = [RecentIncident(id=row_id, occurrence=occurrence) for row_id, occurrence in result.all()]
        except SQLAlchemyError as e:
            logger.error("duplicate_check_failed", event_id=event_id, error=str(e), error_type=type(e).__name__)
            return None

        return find_duplicate(message_text, recent, match_ratio=self.settings.duplicate_keyword_ratio)

    async def create_incident_from_radio_message(
        self,
        message: RadioMessageData,
        event_id: str,
        user_id: str,
    ) -> RadioIncidentResult:
        """Create an incident log entry from a radio message when warranted.

        Never raises: every failure is returned as ``RadioIncidentResult.error``.
        """
        log = logger.bind(message_id=message.id, event_id=event_id)

        try:
            if not self.analyzer.should_create_incident(message):
                return RadioIncidentResult(incident_created=False, reason=NOT_INCIDENT_WORTHY)

            if message.incident_id:
                return RadioIncidentResult(
                    incident_created=False,
                    incident_id=message.incident_id,
                    reason=ALREADY_LINKED,
                )

            details = self.analyzer.extract_incident_details(message)
            status, is_closed = resolve_lifecycle(details.type, details.priority)
            log_data: dict[str, Any] = {
                "event_id": event_id,
                "occurrence": details.description,
                "action_taken": f"Auto-created from radio message on channel {message.channel}",
                "incident_type": details.type,
                "callsign_from": message.from_callsign or RADIO_CALLSIGN,
                "callsign_to": message.to_callsign or "CONTROL",
                "time_of_occurrence": message.created_at or self.clock(),
                "time_logged": self.clock(),
                "entry_type": EntryType.CONTEMPORANEOUS.value,
                "priority": details.priority or "medium",
                "location": details.location,
                "status": status.value,
                "is_closed": is_closed,
            }
            validate_log_payload(log_data)

            # Duplicate check and insert share the lock so repeats racing on
            # one event see each other's incident.
            result = None
            async with event_lock_scope(self.lock, event_id):
                duplicate_id = await self.check_for_duplicate_incident(event_id, message.text)
                if duplicate_id is None:
                    async with self.session_factory() as session:
                        log_data["logged_by_callsign"] = await self.callsigns.resolve(
                            session, user_id, event_id, default=RADIO_CALLSIGN
                        )
                        log_data["log_number"] = await self.numbers.allocate(session, event_id, LogChannel.RADIO)
                    result = await self.writer.create_immutable_log(log_data, user_id)

            if duplicate_id is not None:
                await self._update_message(message.id, incident_id=duplicate_id)
                log.info("radio_duplicate_linked", incident_id=duplicate_id)
                return RadioIncidentResult(
                    incident_created=False,
                    incident_id=duplicate_id,
                    reason=DUPLICATE_LINKED,
                )

            if not result.success:
                return RadioIncidentResult(incident_created=False, error=result.error or "Failed to create incident")
            if result.log is None:
                return RadioIncidentResult(incident_created=False, error="Incident creation returned no log data")

            category = RadioCategory.EMERGENCY if details.type in _EMERGENCY_INCIDENT_TYPES else RadioCategory.INCIDENT
            linked = await self._update_message(
                message.id,
                incident_id=result.log.id,
                category=category.value,
                priority=details.priority,
            )
            if not linked:
                log.warning("radio_incident_created_without_backlink", incident_id=result.log.id)

            log.info(
                "radio_incident_created",
                incident_id=result.log.id,
                log_number=result.log.log_number,
                incident_type=details.type,
                priority=details.priority,
            )
            return RadioIncidentResult(
                incident_created=True,
                incident_id=result.log.id,
                reason=f"Auto-created from radio message: {details.type}",
            )
        except ValidationError as e:
            log.warning("radio_incident_invalid", errors=e.errors)
            return RadioIncidentResult(incident_created=False, error=str(e))
        except Exception as e:
            log.error("radio_incident_creation_failed", error=str(e), error_type=type(e).__name__)
            return RadioIncidentResult(incident_created=False, error=str(e) or type(e).__name__)

    async def process_radio_message(
        self,
        message: RadioMessageData,
        event_id: str,
        user_id: str,
        auto_create_incident: bool = True,
    ) -> RadioProcessResult:
        """Analyse an unanalysed message and create an incident for it when warranted."""
        if not message.category or not message.priority:
            analysis = self.analyzer.analyze_message(message.text)
            await self._update_message(message.id, category=analysis.category.value, priority=analysis.priority)

            if auto_create_incident and analysis.category in (RadioCategory.EMERGENCY, RadioCategory.INCIDENT):
                outcome = await self.create_incident_from_radio_message(
                    message.with_analysis(analysis.category.value, analysis.priority), event_id, user_id
                )
                return RadioProcessResult(
                    analyzed=True,
                    category=analysis.category.value,
                    priority=analysis.priority,
                    incident_created=outcome.incident_created,
                    incident_id=outcome.incident_id,
                    reason=outcome.reason or outcome.error,
                )

            return RadioProcessResult(analyzed=True, category=analysis.category.value, priority=analysis.priority)

        if auto_create_incident and not message.incident_id and self.analyzer.should_create_incident(message):
            outcome = await self.create_incident_from_radio_message(message, event_id, user_id)
            return RadioProcessResult(
                analyzed=True,
                category=message.category,
                priority=message.priority,
                incident_created=outcome.incident_created,
                incident_id=outcome.incident_id,
                reason=outcome.reason or outcome.error,
            )

        return RadioProcessResult(analyzed=True, category=message.category, priority=message.priority)
