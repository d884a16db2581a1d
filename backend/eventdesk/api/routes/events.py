"""Event Routes — event CRUD, status transitions, landing pages, analytics.

Invariants:
    - Mutations are organizer-only (enforced in EventService)
    - The landing page is public; PRIVATE events need ?invite=<code> unless
      the caller is the organizer
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user, get_optional_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.event import (
    EventCreate, EventResponse, EventStatusUpdate, EventUpdate, LandingPageResponse,
)
from eventdesk.services.events import EventService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).create_event(body, user)


@router.get("/mine", response_model=list[EventResponse])
async def list_my_events(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await EventService(db).list_events_by_organizer(user.id)


@router.get("/by-slug/{slug}", response_model=LandingPageResponse)
async def get_landing_page(
    slug: str,
    invite: str | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Public landing page data: event, organizer, registration window, spots."""
    return await EventService(db).landing_page(
        slug, invite, user.id if user else None,
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = EventService(db)
    event = await service.get_event(event_id)
    service.validate_private_access(event, None, user.id)
    return event


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    body: EventUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).update_event(event_id, body, user)


@router.post("/{event_id}/status", response_model=EventResponse)
async def change_event_status(
    event_id: UUID,
    body: EventStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).change_status(event_id, body.status, user)


@router.get("/{event_id}/analytics")
async def get_event_analytics(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).analytics(event_id, user)
