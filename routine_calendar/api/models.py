"""
Pydantic request and response models for the Routine Calendar API.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from routine_calendar.integrations.base import CalendarEvent
from routine_calendar.routines.horizon import MAX_LOOKAHEAD_DAYS
from routine_calendar.routines.models import SyncResult

SendUpdates = Literal["all", "externalOnly", "none"]


# =============================================================================
# Request Models
# =============================================================================


class EventCreateRequest(BaseModel):
    """Request to create a calendar event."""

    title: str = Field(..., min_length=1, max_length=1024, examples=["Dentist"])
    start: datetime = Field(..., description="Start (ISO 8601); naive values use `timezone`")
    end: datetime = Field(..., description="End (ISO 8601); naive values use `timezone`")
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: list[str] = Field(default_factory=list, description="Attendee emails")
    timezone: Optional[str] = Field(
        None,
        description="IANA timezone (defaults to the service's DEFAULT_TIMEZONE)",
    )
    all_day: bool = False
    send_updates: SendUpdates = "none"

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "EventCreateRequest":
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("start and end must both include an offset or both omit it")
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class EventUpdateRequest(BaseModel):
    """Partial update of a calendar event. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=1024)
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: Optional[list[str]] = None
    timezone: Optional[str] = None
    all_day: Optional[bool] = None
    status: Optional[Literal["confirmed", "tentative", "cancelled"]] = None
    send_updates: SendUpdates = "none"

    @model_validator(mode="after")
    def validate_range(self) -> "EventUpdateRequest":
        if self.start and self.end:
            if (self.start.tzinfo is None) != (self.end.tzinfo is None):
                raise ValueError("start and end must both include an offset or both omit it")
            if self.end < self.start:
                raise ValueError("end must not be before start")
        return self

    def to_updates(self, default_timezone: str) -> dict:
        """Convert to the repository's update dict."""
        fields = self.model_dump(exclude_unset=True, exclude={"send_updates"})
        updates: dict = {}

        for key in ("title", "description", "location", "attendees", "status", "all_day"):
            if key in fields:
                updates[key] = fields[key]

        if "start" in fields:
            updates["start_time"] = fields["start"]
        if "end" in fields:
            updates["end_time"] = fields["end"]

        if "start_time" in updates or "end_time" in updates:
            updates["timezone"] = self.timezone or default_timezone

        return updates


class RoutineSyncRequest(BaseModel):
    """Optional overrides for a routine sync run."""

    url: Optional[str] = Field(
        None,
        description="Routines document URL (defaults to ROUTINES_URL)",
    )
    lookahead_days: Optional[int] = Field(
        None,
        ge=0,
        le=MAX_LOOKAHEAD_DAYS,
        description="Days ahead to materialize (overrides the document and default)",
    )
    dry_run: bool = Field(
        default=False,
        description="Report planned creations without creating them",
    )


# =============================================================================
# Response Models
# =============================================================================


class EventResponse(BaseModel):
    """Event data in response."""

    id: str
    title: str
    start: str = Field(..., description="Start time (ISO 8601)")
    end: str = Field(..., description="End time (ISO 8601)")
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: list[str] = Field(default_factory=list)
    all_day: bool = False
    status: str = "confirmed"
    html_link: Optional[str] = None

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            start=event.start_time.isoformat(),
            end=event.end_time.isoformat(),
            description=event.description,
            location=event.location,
            attendees=event.attendees,
            all_day=event.all_day,
            status=event.status,
            html_link=event.html_link,
        )


class EventListResponse(BaseModel):
    """List of events in a time range."""

    events: list[EventResponse]
    total: int
    time_min: str
    time_max: str


class DeleteEventResponse(BaseModel):
    """Response for event deletion."""

    success: bool
    event_id: str
    message: str


class CreatedItemResponse(BaseModel):
    id: str
    title: str
    start: str


class PlannedItemResponse(BaseModel):
    title: str
    start: str
    end: str
    note: Optional[str] = None
    location: Optional[str] = None


class HorizonResponse(BaseModel):
    start: str
    end: str


class SyncResultResponse(BaseModel):
    """Outcome of a routine sync run."""

    created_count: int
    skipped_count: int = 0
    items: list[CreatedItemResponse] = Field(default_factory=list)
    dry_run: bool = False
    horizon: Optional[HorizonResponse] = None
    planned: list[PlannedItemResponse] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "created_count": 2,
                "skipped_count": 1,
                "items": [
                    {"id": "abc123", "title": "Gym", "start": "2024-01-01T06:00:00"},
                    {"id": "def456", "title": "Gym", "start": "2024-01-05T06:00:00"},
                ],
                "dry_run": False,
                "horizon": {"start": "2024-01-01T00:00:00", "end": "2024-01-08T00:00:00"},
            }
        }
    )

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResultResponse":
        return cls.model_validate(result.to_dict())


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "degraded"]
    version: str
    oauth_configured: bool
    routines_configured: bool


class ErrorResponse(BaseModel):
    """Error envelope shared by all endpoints."""

    error_type: str
    message: str
    stage: Optional[str] = None
    detail: Optional[dict] = None
    retryable: bool = False
