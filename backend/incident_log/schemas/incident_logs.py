"""Pydantic schemas for incident log creation, reads and amendments."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from incident_log.domain.amendments import ChangeType
from incident_log.domain.clock import as_utc
from incident_log.domain.incident_types import Priority, normalise_priority


class CreateLogRequest(BaseModel):
    """Request body for POST /events/{event_id}/logs.

    Required fields are optional here on purpose: the entry validator owns
    those rules so a missing field is a 400 with a readable message.
    """

    occurrence: str | None = None
    action_taken: str | None = None
    incident_type: str | None = None
    callsign_from: str = ""
    callsign_to: str = ""
    time_of_occurrence: datetime | None = None
    time_logged: datetime | None = None
    entry_type: str | None = None
    retrospective_justification: str | None = None
    priority: str | None = Priority.MEDIUM.value
    location: str | None = None
    photo_url: str | None = None
    status: str | None = None  # ignored: lifecycle is derived

    @field_validator("priority", mode="before")
    @classmethod
    def _normalise_priority(cls, value: Any) -> Any:
        return normalise_priority(value) if isinstance(value, str) else value


class IncidentLogRecord(BaseModel):
    """A persisted incident log row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: str
    log_number: str
    occurrence: str
    action_taken: str
    incident_type: str
    priority: str | None = None
    location: str | None = None
    photo_url: str | None = None
    callsign_from: str
    callsign_to: str
    logged_by_callsign: str | None = None
    logged_by_user_id: str | None = None
    time_of_occurrence: datetime
    time_logged: datetime
    timestamp: datetime
    entry_type: str
    retrospective_justification: str | None = None
    status: str
    is_closed: bool
    type: str | None = None
    category: str | None = None
    match_minute: int | None = None
    home_score: int | None = None
    away_score: int | None = None
    created_at: datetime

    @field_validator("time_of_occurrence", "time_logged", "timestamp", "created_at")
    @classmethod
    def _normalise_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class IncidentLogView(IncidentLogRecord):
    """Current values of a log: the original row with its revisions applied."""

    is_amended: bool = False
    revision_count: int = 0


class CreateLogResponse(BaseModel):
    success: bool
    log: IncidentLogRecord | None = None
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


class AmendLogRequest(BaseModel):
    field_changed: str
    new_value: Any = None
    change_reason: str | None = None
    change_type: ChangeType = ChangeType.AMENDMENT


class RevisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    revision_number: int
    field_changed: str
    old_value: Any = None
    new_value: Any = None
    change_reason: str
    change_type: str
    changed_at: datetime
    changed_by_user_id: str | None = None
    changed_by_callsign: str | None = None


class AmendLogResponse(BaseModel):
    success: bool
    revisions: list[RevisionResponse] = Field(default_factory=list)
    incident: IncidentLogView | None = None


class RevisionSummaryResponse(BaseModel):
    total_revisions: int
    change_types: list[str] = Field(default_factory=list)
    has_corrections: bool = False
    has_clarifications: bool = False
    last_amended_at: datetime | None = None
    last_amended_by: str | None = None


class RevisionHistoryResponse(BaseModel):
    incident: IncidentLogView
    revisions: list[RevisionResponse] = Field(default_factory=list)
    summary: RevisionSummaryResponse


class MatchStateResponse(BaseModel):
    event_id: str
    phase: str
    home_score: int
    away_score: int
    current_minute: int
    display_time: str
    kick_off_first_half: datetime | None = None
    half_time: datetime | None = None
    kick_off_second_half: datetime | None = None
    full_time: datetime | None = None
