"""Event ORM — the aggregate every workspace, tier, and registration hangs off.

Invariants:
    - landing_page_url is a unique slug derived from the name
    - invite_link is set only for PRIVATE events and is unique
    - status follows EVENT_STATUS_TRANSITIONS (core/event_rules.py)
    - capacity None means uncapped

Design Decisions:
    - venue, virtual_links, branding as JSON: free-form presentation data
      the backend only checks for presence
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Integer, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from eventdesk.core.domain_types import EventStatus, EventVisibility
from eventdesk.db.base import Base, utcnow


class Event(Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    mode: Mapped[str] = mapped_column(String(10), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    registration_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    organizer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    visibility: Mapped[str] = mapped_column(
        String(10), nullable=False, default=EventVisibility.PUBLIC.value,
    )
    status: Mapped[str] = mapped_column(
        String(12), nullable=False, default=EventStatus.DRAFT.value,
    )
    branding: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    venue: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    virtual_links: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    landing_page_url: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True,
    )
    invite_link: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True,
    )
    leaderboard_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )
