"""ImmutableLogWriter — the single insert path for incident_logs.

The writer performs no derivation: log numbers, callsigns, lifecycle and
match-flow fields arrive already resolved. It inserts exactly one row, never
updates an existing one, and reports failure as a result instead of raising.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incident_log.db.models.incident_log import IncidentLog
from incident_log.domain.clock import as_utc, utc_now
from incident_log.domain.entry_validation import entry_timing_warnings
from incident_log.domain.incident_types import EntryType
from incident_log.schemas.incident_logs import IncidentLogRecord

logger = structlog.get_logger(__name__)

# Set by the writer itself, never taken from callers
_WRITER_OWNED_FIELDS = frozenset({"id", "created_at", "timestamp", "logged_by_user_id"})
_COLUMN_NAMES = frozenset(column.name for column in IncidentLog.__table__.columns)
_DATETIME_FIELDS = ("time_of_occurrence", "time_logged")


@dataclass
class WriteResult:
    success: bool
    log: IncidentLogRecord | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None


class ImmutableLogWriter:
    """Append-only persistence boundary for incident log entries."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_immutable_log(self, log_data: Mapping[str, Any], user_id: str) -> WriteResult:
        """Insert one incident log row.

        Args:
            log_data: Fully resolved column values (log_number, lifecycle,
                callsigns and any match-flow fields included)
            user_id: Id of the acting user, stored as logged_by_user_id

        Returns:
            WriteResult(success=True, log=..., warnings=[...]) on insert,
            WriteResult(success=False, error=...) otherwise
        """
        unknown = sorted(set(log_data) - _COLUMN_NAMES)
        if unknown:
            return WriteResult(success=False, error=f"Unknown log fields: {', '.join(unknown)}")

        if log_data.get("entry_type") == EntryType.RETROSPECTIVE and not (
            log_data.get("retrospective_justification") or ""
        ).strip():
            return WriteResult(
                success=False,
                error="Retrospective entries require a justification explaining the delay in logging.",
            )

        values = {key: value for key, value in log_data.items() if key not in _WRITER_OWNED_FIELDS}
        if values.get("time_logged") is None:
            values["time_logged"] = utc_now()
        for name in _DATETIME_FIELDS:
            if isinstance(values.get(name), datetime):
                values[name] = as_utc(values[name])

        if not isinstance(values.get("time_of_occurrence"), datetime):
            return WriteResult(success=False, error="time_of_occurrence must be a datetime")

        timing = entry_timing_warnings(
            values["time_of_occurrence"],
            values["time_logged"],
            values.get("entry_type", EntryType.CONTEMPORANEOUS),
        )

        row = IncidentLog(
            **values,
            timestamp=values["time_of_occurrence"],
            logged_by_user_id=user_id,
            created_at=utc_now(),
        )

        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
                record = IncidentLogRecord.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(
                "incident_log_write_failed",
                event_id=values.get("event_id"),
                log_number=values.get("log_number"),
                error=str(e),
                error_type=type(e).__name__,
            )
            return WriteResult(success=False, error=f"Failed to create log entry: {type(e).__name__}")

        logger.info(
            "incident_log_created",
            log_id=record.id,
            log_number=record.log_number,
            event_id=record.event_id,
            incident_type=record.incident_type,
            entry_type=record.entry_type,
            warnings=len(timing.warnings),
        )
        return WriteResult(success=True, log=record, warnings=timing.warnings)
