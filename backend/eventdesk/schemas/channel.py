"""Channel Schemas — channels, paginated messages, posting and editing.

Invariants:
    - Message content is stripped and non-empty (<= 4000 chars)
    - Page limit within 1..200
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventdesk.core.domain_types import ChannelType


class ChannelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: ChannelType = ChannelType.GENERAL
    description: str | None = Field(None, max_length=1000)
    is_private: bool = False
    member_ids: list[UUID] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class ChannelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    name: str
    type: ChannelType
    description: str | None
    is_private: bool
    created_at: datetime
    updated_at: datetime


class MessageCreate(BaseModel):
    content: str = Field(max_length=4000)
    reply_to_id: UUID | None = None
    attachments: list[dict] | None = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class MessageEdit(BaseModel):
    content: str = Field(max_length=4000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    channel_id: UUID
    sender_id: UUID
    sender_name: str
    content: str
    message_type: str
    reply_to_id: UUID | None
    attachments: list[dict] | None
    is_edited: bool
    edited_at: datetime | None
    created_at: datetime


class MessagePage(BaseModel):
    messages: list[MessageResponse]
    has_more: bool
    next_cursor: datetime | None
    next_cursor_id: UUID | None = None
