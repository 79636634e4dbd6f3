"""Resolve the callsign recorded against a log entry for the acting user."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from incident_log.db.models.event import CallsignAssignment, CallsignPosition, Profile
from incident_log.domain.callsigns import UNKNOWN_CALLSIGN, resolve_callsign

logger = structlog.get_logger(__name__)


class CallsignService:
    async def _position(self, session: AsyncSession, user_id: str, event_id: str) -> CallsignPosition | None:
        try:
            result = await session.execute(
                select(CallsignPosition)
                .join(CallsignAssignment, CallsignAssignment.position_id == CallsignPosition.id)
                .where(
                    CallsignAssignment.user_id == user_id,
                    CallsignAssignment.event_id == event_id,
                )
                .order_by(CallsignAssignment.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning(
                "callsign_assignment_lookup_failed",
                user_id=user_id,
                event_id=event_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _profile(self, session: AsyncSession, user_id: str) -> Profile | None:
        try:
            return await session.get(Profile, user_id)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning("profile_lookup_failed", user_id=user_id, error=str(e), error_type=type(e).__name__)
            return None

    async def resolve(
        self,
        session: AsyncSession,
        user_id: str,
        event_id: str,
        default: str = UNKNOWN_CALLSIGN,
    ) -> str:
        """Callsign from the user's position for this event, else initials, else ``default``.

        Lookup failures fall through to the next tier.
        """
        position = await self._position(session, user_id, event_id)
        profile = await self._profile(session, user_id)
        return resolve_callsign(
            position.callsign if position else None,
            position.short_code if position else None,
            profile.first_name if profile else None,
            profile.last_name if profile else None,
            default=default,
        )
