"""Pydantic schemas for radio message processing."""

from pydantic import BaseModel


class ProcessRadioMessageRequest(BaseModel):
    auto_create_incident: bool = True


class ProcessRadioMessageResponse(BaseModel):
    analyzed: bool
    category: str | None = None
    priority: str | None = None
    incident_created: bool | None = None
    incident_id: int | None = None
    reason: str | None = None
