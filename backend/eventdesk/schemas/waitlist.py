"""Waitlist Schemas — queue entries, moves, and statistics."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventdesk.core.domain_types import WaitlistStatus


class WaitlistAdd(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    phone: str | None = Field(None, max_length=40)
    ticket_tier_id: UUID | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class WaitlistMove(BaseModel):
    position: int = Field(ge=1)


class WaitlistEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    ticket_tier_id: UUID | None
    user_id: UUID | None
    full_name: str
    email: str
    phone: str | None
    position: int
    status: WaitlistStatus
    promoted_at: datetime | None
    registration_id: UUID | None
    created_at: datetime


class WaitlistStats(BaseModel):
    waiting: int
    promoted: int
    removed: int
    average_wait_days: float
