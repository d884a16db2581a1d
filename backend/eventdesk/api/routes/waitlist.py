"""Waitlist Routes — the per-event queue, reordering, removal, promotion."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.waitlist import (
    WaitlistAdd, WaitlistEntryResponse, WaitlistMove, WaitlistStats,
)
from eventdesk.services.waitlist import WaitlistService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["waitlist"])


@router.post(
    "/events/{event_id}/waitlist", response_model=WaitlistEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_waitlist(
    event_id: UUID,
    body: WaitlistAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).add(event_id, body, user)


@router.get("/events/{event_id}/waitlist", response_model=list[WaitlistEntryResponse])
async def list_waitlist(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).list_waiting(event_id, user)


@router.get("/events/{event_id}/waitlist/stats", response_model=WaitlistStats)
async def waitlist_stats(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).stats(event_id, user)


@router.post("/waitlist/{entry_id}/move", response_model=list[WaitlistEntryResponse])
async def move_entry(
    entry_id: UUID,
    body: WaitlistMove,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).move(entry_id, body.position, user)


@router.post("/waitlist/{entry_id}/promote", response_model=WaitlistEntryResponse)
async def promote_entry(
    entry_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).promote(entry_id, user)


@router.delete("/waitlist/{entry_id}", response_model=WaitlistEntryResponse)
async def remove_entry(
    entry_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WaitlistService(db).remove(entry_id, user)
