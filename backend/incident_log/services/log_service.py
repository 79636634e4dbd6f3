"""IncidentLogService — the manual log creation pipeline.

validate -> classify -> (match-flow derive) -> allocate log number -> write

Everything that depends on the event's existing logs (match state, log number)
runs under the per-event lock together with the insert.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import redis
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incident_log.core.exceptions import LockTimeoutError, LogNotFound, ValidationError
from incident_log.core.locking import EventLock, event_lock_scope
from incident_log.db.models.incident_log import IncidentLog
from incident_log.domain.classification import resolve_lifecycle
from incident_log.domain.clock import as_utc, utc_now
from incident_log.domain.entry_validation import validate_log_payload
from incident_log.domain.incident_types import (
    MATCH_LOG_CATEGORY,
    MATCH_LOG_TYPE,
    Priority,
    is_match_flow_type,
    normalise_priority,
)
from incident_log.domain.log_numbers import LogChannel
from incident_log.domain.match_flow import MatchSummary
from incident_log.schemas.incident_logs import IncidentLogRecord
from incident_log.services.callsign_service import CallsignService
from incident_log.services.log_number_service import LogNumberService
from incident_log.services.log_writer import ImmutableLogWriter, WriteResult
from incident_log.services.match_flow_service import MatchFlowService

logger = structlog.get_logger(__name__)

# Caller-supplied fields copied onto the new row. Lifecycle, provenance and
# match-flow columns are always derived.
_CLIENT_FIELDS = (
    "occurrence",
    "action_taken",
    "incident_type",
    "callsign_from",
    "callsign_to",
    "time_of_occurrence",
    "time_logged",
    "entry_type",
    "retrospective_justification",
    "priority",
    "location",
    "photo_url",
)


def parse_timestamp(value: Any, field_name: str) -> datetime | None:
    """Accept a datetime or ISO 8601 string; return an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value)))
    except ValueError as e:
        raise ValidationError(f"{field_name} must be an ISO 8601 timestamp") from e


class IncidentLogService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        writer: ImmutableLogWriter | None = None,
        lock: EventLock | None = None,
        numbers: LogNumberService | None = None,
        callsigns: CallsignService | None = None,
        match_flow: MatchFlowService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.writer = writer or ImmutableLogWriter(session_factory)
        self.lock = lock
        self.numbers = numbers or LogNumberService()
        self.callsigns = callsigns or CallsignService()
        self.match_flow = match_flow or MatchFlowService()
        self.clock = clock

    async def create_log(self, event_id: str, payload: Mapping[str, Any], user_id: str) -> WriteResult:
        """Create one incident log entry for ``event_id``.

        Args:
            event_id: Event the log belongs to
            payload: Client-supplied fields (see CreateLogRequest)
            user_id: Acting user

        Returns:
            WriteResult from the writer, or a failed WriteResult when the
            log number lock could not be taken (timeout or Redis down) or the
            pre-insert reads failed

        Raises:
            ValidationError: payload breaks a hard creation rule (nothing written)
        """
        validate_log_payload(payload)

        log_data: dict[str, Any] = {name: payload.get(name) for name in _CLIENT_FIELDS}
        log_data["event_id"] = event_id
        log_data["callsign_from"] = log_data["callsign_from"] or ""
        log_data["callsign_to"] = log_data["callsign_to"] or ""
        log_data["priority"] = normalise_priority(log_data["priority"]) or Priority.MEDIUM.value
        log_data["time_of_occurrence"] = parse_timestamp(payload.get("time_of_occurrence"), "time_of_occurrence")
        log_data["time_logged"] = parse_timestamp(payload.get("time_logged"), "time_logged") or self.clock()

        status, is_closed = resolve_lifecycle(log_data["incident_type"], log_data["priority"])
        log_data["status"] = status.value
        log_data["is_closed"] = is_closed

        try:
            async with event_lock_scope(self.lock, event_id):
                async with self.session_factory() as session:
                    log_data["logged_by_callsign"] = await self.callsigns.resolve(session, user_id, event_id)

                    if is_match_flow_type(log_data["incident_type"]):
                        state = await self.match_flow.derive_for_new_entry(
                            session, event_id, log_data["incident_type"], log_data["time_of_occurrence"]
                        )
                        log_data.update(
                            type=MATCH_LOG_TYPE,
                            category=MATCH_LOG_CATEGORY,
                            match_minute=state.match_minute,
                            home_score=state.home_score,
                            away_score=state.away_score,
                        )

                    log_data["log_number"] = await self.numbers.allocate(session, event_id, LogChannel.MANUAL)

                return await self.writer.create_immutable_log(log_data, user_id)
        except LockTimeoutError as e:
            return WriteResult(success=False, error=str(e))
        except redis.RedisError as e:
            logger.error(
                "log_number_lock_unavailable",
                event_id=event_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return WriteResult(success=False, error=f"Log number lock unavailable: {type(e).__name__}")
        except SQLAlchemyError as e:
            logger.error(
                "log_preparation_failed",
                event_id=event_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return WriteResult(success=False, error=f"Failed to prepare log entry: {type(e).__name__}")

    async def get_log(self, log_id: int) -> IncidentLogRecord:
        """Return the stored row for ``log_id``.

        Raises:
            LogNotFound: no such log
        """
        async with self.session_factory() as session:
            row = await session.get(IncidentLog, log_id)
            if row is None:
                raise LogNotFound(log_id)
            return IncidentLogRecord.model_validate(row)

    async def match_state(self, event_id: str, now: datetime | None = None) -> MatchSummary:
        """Live phase, score and clock for the event's football match."""
        async with self.session_factory() as session:
            return await self.match_flow.summarize(session, event_id, now or self.clock())
