"""Incident log API routes.

Endpoints:
- POST /events/{event_id}/logs        — Create an immutable log entry
- GET  /events/{event_id}/match-state — Live match phase, score and clock
- GET  /logs/{log_id}                 — Current view of a log (revisions applied)
- POST /logs/{log_id}/amend           — Append an amendment revision
- GET  /logs/{log_id}/revisions       — Revision history with summary

Domain errors (ValidationError, LogNotFound, AmendmentNotAllowed,
DependencyFailure) are mapped to 400/404/403/503 by the app-level exception
handlers; PersistenceFailure is a 500.
"""

from fastapi import APIRouter, Depends, status

from incident_log.api.deps import get_amendment_service, get_log_service
from incident_log.core.auth import AuthUser, require_auth
from incident_log.core.exceptions import PersistenceFailure
from incident_log.schemas.incident_logs import (
    AmendLogRequest,
    AmendLogResponse,
    CreateLogRequest,
    CreateLogResponse,
    IncidentLogView,
    MatchStateResponse,
    RevisionHistoryResponse,
    RevisionResponse,
    RevisionSummaryResponse,
)
from incident_log.services.amendment_service import AmendmentService
from incident_log.services.log_service import IncidentLogService

router = APIRouter()


@router.post(
    "/events/{event_id}/logs",
    response_model=CreateLogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_log(
    event_id: str,
    request: CreateLogRequest,
    user: AuthUser = Depends(require_auth),
    service: IncidentLogService = Depends(get_log_service),
) -> CreateLogResponse:
    """Create one incident log entry.

    Log number, callsign, lifecycle and match-flow fields are derived; any
    status sent by the client is ignored.

    Raises:
        PersistenceFailure: Entry could not be written (500)
    """
    result = await service.create_log(event_id, request.model_dump(), user.user_id)
    if not result.success:
        raise PersistenceFailure(result.error or "Failed to create log entry")

    return CreateLogResponse(success=True, log=result.log, warnings=result.warnings)


@router.get("/events/{event_id}/match-state", response_model=MatchStateResponse)
async def get_match_state(
    event_id: str,
    user: AuthUser = Depends(require_auth),
    service: IncidentLogService = Depends(get_log_service),
) -> MatchStateResponse:
    summary = await service.match_state(event_id)
    return MatchStateResponse(
        event_id=event_id,
        phase=summary.phase,
        home_score=summary.home_score,
        away_score=summary.away_score,
        current_minute=summary.current_minute,
        display_time=summary.display_time,
        kick_off_first_half=summary.kick_off_first_half,
        half_time=summary.half_time,
        kick_off_second_half=summary.kick_off_second_half,
        full_time=summary.full_time,
    )


@router.get("/logs/{log_id}", response_model=IncidentLogView)
async def get_log(
    log_id: int,
    user: AuthUser = Depends(require_auth),
    amendments: AmendmentService = Depends(get_amendment_service),
) -> IncidentLogView:
    return await amendments.current_view(log_id)


@router.post(
    "/logs/{log_id}/amend",
    response_model=AmendLogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def amend_log(
    log_id: int,
    request: AmendLogRequest,
    user: AuthUser = Depends(require_auth),
    amendments: AmendmentService = Depends(get_amendment_service),
) -> AmendLogResponse:
    """Append an amendment to a log. The original entry is never modified."""
    outcome = await amendments.amend_log(
        log_id,
        request.field_changed,
        request.new_value,
        request.change_reason,
        user.user_id,
        change_type=request.change_type,
    )
    return AmendLogResponse(
        success=True,
        revisions=[RevisionResponse.model_validate(revision) for revision in outcome.revisions],
        incident=outcome.view,
    )


@router.get("/logs/{log_id}/revisions", response_model=RevisionHistoryResponse)
async def get_revisions(
    log_id: int,
    user: AuthUser = Depends(require_auth),
    amendments: AmendmentService = Depends(get_amendment_service),
) -> RevisionHistoryResponse:
    history = await amendments.get_revision_history(log_id)
    return RevisionHistoryResponse(
        incident=history.view,
        revisions=[RevisionResponse.model_validate(revision) for revision in history.revisions],
        summary=RevisionSummaryResponse.model_validate(history.summary, from_attributes=True),
    )
