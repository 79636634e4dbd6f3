"""Radio message processing route.

- POST /radio/messages/{message_id}/process — analyse a message and, when it
  warrants one, create (or link) an incident log entry
"""

from fastapi import APIRouter, Depends

from incident_log.api.deps import get_radio_service
from incident_log.core.auth import AuthUser, require_auth
from incident_log.schemas.radio import ProcessRadioMessageRequest, ProcessRadioMessageResponse
from incident_log.services.radio_incident_service import RadioIncidentService

router = APIRouter()


@router.post("/radio/messages/{message_id}/process", response_model=ProcessRadioMessageResponse)
async def process_radio_message(
    message_id: int,
    request: ProcessRadioMessageRequest | None = None,
    user: AuthUser = Depends(require_auth),
    service: RadioIncidentService = Depends(get_radio_service),
) -> ProcessRadioMessageResponse:
    """Process one radio message for its event.

    Raises:
        RadioMessageNotFound: mapped to 404
    """
    options = request or ProcessRadioMessageRequest()
    message = await service.get_message(message_id)
    result = await service.process_radio_message(
        message,
        message.event_id,
        user.user_id,
        auto_create_incident=options.auto_create_incident,
    )
    return ProcessRadioMessageResponse(
        analyzed=result.analyzed,
        category=result.category,
        priority=result.priority,
        incident_created=result.incident_created,
        incident_id=result.incident_id,
        reason=result.reason,
    )
