"""AmendmentService — append-only amendments to incident logs.

An amendment appends one (sometimes two) rows to incident_log_revisions. The
incident_logs row is never modified; readers get the current view by
replaying revisions over it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incident_log.core.exceptions import (
    AmendmentNotAllowed,
    DependencyFailure,
    LogNotFound,
    PersistenceFailure,
    ValidationError,
)
from incident_log.db.models.event import Profile
from incident_log.db.models.incident_log import IncidentLog
from incident_log.db.models.log_revision import IncidentLogRevision
from incident_log.domain.amendments import (
    EJECTION_INCIDENT_TYPE,
    ChangeType,
    RevisionData,
    RevisionSummary,
    apply_revisions,
    can_amend,
    mentions_ejection,
    summarize_revisions,
    to_json_value,
    validate_amendment_request,
)
from incident_log.domain.clock import as_utc, utc_now
from incident_log.schemas.incident_logs import IncidentLogRecord, IncidentLogView
from incident_log.services.callsign_service import CallsignService

logger = structlog.get_logger(__name__)

EJECTION_REASON = "Incident type updated to Ejection after action taken was amended to record an ejection."


@dataclass
class AmendmentOutcome:
    revisions: list[RevisionData]
    view: IncidentLogView


@dataclass
class RevisionHistory:
    view: IncidentLogView
    revisions: list[RevisionData]
    summary: RevisionSummary


def _revision_data(row: IncidentLogRevision) -> RevisionData:
    return RevisionData(
        revision_number=row.revision_number,
        field_changed=row.field_changed,
        old_value=row.old_value,
        new_value=row.new_value,
        change_reason=row.change_reason,
        change_type=row.change_type,
        changed_at=as_utc(row.changed_at),
        changed_by_user_id=row.changed_by_user_id,
        changed_by_callsign=row.changed_by_callsign,
    )


def _stored_values(record: IncidentLogRecord) -> dict[str, Any]:
    """Row values in the JSON form revisions store them in."""
    return {name: to_json_value(value) for name, value in record.model_dump().items()}


def _build_view(record: IncidentLogRecord, revisions: list[RevisionData]) -> IncidentLogView:
    current = apply_revisions(_stored_values(record), revisions)
    return IncidentLogView.model_validate(
        {**current, "is_amended": bool(revisions), "revision_count": len(revisions)}
    )


def _normalise_new_value(field_changed: str, new_value: Any) -> Any:
    if field_changed == "time_of_occurrence" and isinstance(new_value, str):
        return to_json_value(as_utc(datetime.fromisoformat(new_value)))
    if isinstance(new_value, str):
        return new_value.strip()
    return to_json_value(new_value)


class AmendmentService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        callsigns: CallsignService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.callsigns = callsigns or CallsignService()
        self.clock = clock

    async def _load_log(self, session: AsyncSession, log_id: int) -> IncidentLog:
        row = await session.get(IncidentLog, log_id)
        if row is None:
            raise LogNotFound(log_id)
        return row

    async def _load_profile(self, session: AsyncSession, user_id: str) -> Profile | None:
        """The acting user's profile. Permission cannot be decided without it."""
        try:
            return await session.get(Profile, user_id)
        except SQLAlchemyError as e:
            logger.error(
                "amendment_profile_lookup_failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DependencyFailure("Could not verify amendment permission") from e

    async def _load_revisions(self, session: AsyncSession, log_id: int) -> list[RevisionData]:
        result = await session.execute(
            select(IncidentLogRevision)
            .where(IncidentLogRevision.incident_log_id == log_id)
            .order_by(IncidentLogRevision.revision_number.asc())
        )
        return [_revision_data(row) for row in result.scalars().all()]

    async def _next_revision_number(self, session: AsyncSession, log_id: int) -> int:
        result = await session.execute(
            select(func.max(IncidentLogRevision.revision_number)).where(
                IncidentLogRevision.incident_log_id == log_id
            )
        )
        return (result.scalar_one_or_none() or 0) + 1

    async def current_view(self, log_id: int) -> IncidentLogView:
        """Original row with every revision applied."""
        async with self.session_factory() as session:
            row = await self._load_log(session, log_id)
            revisions = await self._load_revisions(session, log_id)
            return _build_view(IncidentLogRecord.model_validate(row), revisions)

    async def get_revision_history(self, log_id: int) -> RevisionHistory:
        async with self.session_factory() as session:
            row = await self._load_log(session, log_id)
            revisions = await self._load_revisions(session, log_id)
            view = _build_view(IncidentLogRecord.model_validate(row), revisions)
        return RevisionHistory(view=view, revisions=revisions, summary=summarize_revisions(revisions))

    async def amend_log(
        self,
        log_id: int,
        field_changed: str,
        new_value: Any,
        change_reason: str | None,
        user_id: str,
        change_type: ChangeType = ChangeType.AMENDMENT,
    ) -> AmendmentOutcome:
        """Append a revision changing ``field_changed`` on log ``log_id``.

        Raises:
            LogNotFound: no such log
            AmendmentNotAllowed: user may not amend this log
            ValidationError: bad field, empty value, weak reason, or no change
            DependencyFailure: acting user's profile could not be read
            PersistenceFailure: revision rows could not be committed
        """
        now = self.clock()

        async with self.session_factory() as session:
            row = await self._load_log(session, log_id)
            profile = await self._load_profile(session, user_id)

            permission = can_amend(
                profile.role if profile else None,
                row.logged_by_user_id,
                user_id,
                row.created_at,
                now,
            )
            if not permission.allowed:
                logger.info("amendment_refused", log_id=log_id, user_id=user_id, reason=permission.reason)
                raise AmendmentNotAllowed(permission.reason)

            validate_amendment_request(field_changed, new_value, change_reason)

            revisions = await self._load_revisions(session, log_id)
            current = apply_revisions(_stored_values(IncidentLogRecord.model_validate(row)), revisions)

            value = _normalise_new_value(field_changed, new_value)
            old_value = current.get(field_changed)
            if value == old_value:
                raise ValidationError("New value is the same as the current value.")

            callsign = await self.callsigns.resolve(session, user_id, row.event_id)
            number = await self._next_revision_number(session, log_id)

            pending = [
                IncidentLogRevision(
                    incident_log_id=log_id,
                    revision_number=number,
                    field_changed=field_changed,
                    old_value=old_value,
                    new_value=value,
                    change_reason=change_reason.strip(),
                    change_type=ChangeType(change_type).value,
                    changed_by_user_id=user_id,
                    changed_by_callsign=callsign,
                    changed_at=now,
                )
            ]

            if (
                field_changed == "action_taken"
                and mentions_ejection(value)
                and current.get("incident_type") != EJECTION_INCIDENT_TYPE
            ):
                pending.append(
                    IncidentLogRevision(
                        incident_log_id=log_id,
                        revision_number=number + 1,
                        field_changed="incident_type",
                        old_value=current.get("incident_type"),
                        new_value=EJECTION_INCIDENT_TYPE,
                        change_reason=EJECTION_REASON,
                        change_type=ChangeType.AMENDMENT.value,
                        changed_by_user_id=user_id,
                        changed_by_callsign=callsign,
                        changed_at=now,
                    )
                )

            session.add_all(pending)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(
                    "amendment_write_failed",
                    log_id=log_id,
                    field_changed=field_changed,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise PersistenceFailure(f"Failed to record amendment: {type(e).__name__}") from e

            appended = [_revision_data(revision) for revision in pending]
            view = _build_view(IncidentLogRecord.model_validate(row), revisions + appended)

        logger.info(
            "incident_log_amended",
            log_id=log_id,
            field_changed=field_changed,
            change_type=ChangeType(change_type).value,
            revisions=[revision.revision_number for revision in appended],
        )
        return AmendmentOutcome(revisions=appended, view=view)
