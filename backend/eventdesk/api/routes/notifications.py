"""Notification Routes — the caller's inbox and workspace broadcasts."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.notification import (
    BroadcastCreate, BroadcastResponse, MarkAllReadResponse, NotificationResponse,
    UnreadCount,
)
from eventdesk.services.broadcasts import BroadcastService
from eventdesk.services.notifications import NotificationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["notifications"])


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).list_notifications(user, unread_only, limit)


@router.get("/notifications/unread-count", response_model=UnreadCount)
async def unread_count(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return {"unread": await NotificationService(db).unread_count(user)}


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return {"updated": await NotificationService(db).mark_all_read(user)}


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).mark_read(notification_id, user)


# ─── Broadcasts ──────────────────────────────────────────────────

@router.post(
    "/workspaces/{workspace_id}/broadcasts", response_model=BroadcastResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_broadcast(
    workspace_id: UUID,
    body: BroadcastCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BroadcastService(db).send(workspace_id, body, user)


@router.get(
    "/workspaces/{workspace_id}/broadcasts", response_model=list[BroadcastResponse],
)
async def list_broadcasts(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BroadcastService(db).list_broadcasts(workspace_id, user)
