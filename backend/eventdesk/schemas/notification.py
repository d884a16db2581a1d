"""Notification Schemas — per-user notifications and workspace broadcasts."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from eventdesk.core.domain_types import BroadcastPriority


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    link: str | None
    metadata: dict = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    is_read: bool
    created_at: datetime


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


class BroadcastCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=5000)
    priority: BroadcastPriority = BroadcastPriority.NORMAL
    include_children: bool = False


class BroadcastResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    sender_id: UUID
    title: str
    content: str
    priority: BroadcastPriority
    include_children: bool
    delivery_stats: dict
    created_at: datetime
