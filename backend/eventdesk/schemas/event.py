"""Event Schemas — creation, partial update, status change, and public views.

Invariants:
    - EventCreate.name: 1-200 chars, stripped
    - capacity, when given, is >= 1
    - Mode/venue coherence and date ordering are checked in core/event_rules.py
      (they depend on merged state for updates)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventdesk.core.domain_types import EventMode, EventStatus, EventVisibility


class EventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    mode: EventMode
    start_date: datetime
    end_date: datetime
    capacity: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    visibility: EventVisibility = EventVisibility.PUBLIC
    branding: dict = Field(default_factory=dict)
    venue: dict | None = None
    virtual_links: dict | None = None
    leaderboard_enabled: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class EventUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    mode: EventMode | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    capacity: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    visibility: EventVisibility | None = None
    branding: dict | None = None
    venue: dict | None = None
    virtual_links: dict | None = None
    leaderboard_enabled: bool | None = None


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    mode: EventMode
    start_date: datetime
    end_date: datetime
    capacity: int | None
    registration_deadline: datetime | None
    organizer_id: UUID
    visibility: EventVisibility
    status: EventStatus
    branding: dict
    venue: dict | None
    virtual_links: dict | None
    landing_page_url: str
    invite_link: str | None
    leaderboard_enabled: bool
    created_at: datetime
    updated_at: datetime


class PublicEventResponse(BaseModel):
    """Landing-page view; never exposes the invite link."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    mode: EventMode
    start_date: datetime
    end_date: datetime
    capacity: int | None
    registration_deadline: datetime | None
    visibility: EventVisibility
    status: EventStatus
    branding: dict
    venue: dict | None
    virtual_links: dict | None
    landing_page_url: str


class OrganizerInfo(BaseModel):
    id: UUID
    full_name: str


class LandingPageResponse(BaseModel):
    event: PublicEventResponse
    organizer: OrganizerInfo
    registration_open: bool
    spots_remaining: int | None
