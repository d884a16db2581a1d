"""Channel Routes — workspace chat channels and cursor-paginated messages."""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.channel import (
    ChannelCreate, ChannelResponse, MessageCreate, MessageEdit, MessagePage,
    MessageResponse,
)
from eventdesk.services.chat import ChatService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["channels"])


@router.post(
    "/workspaces/{workspace_id}/channels", response_model=ChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_channel(
    workspace_id: UUID,
    body: ChannelCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService(db).create_channel(workspace_id, body, user)


@router.get("/workspaces/{workspace_id}/channels", response_model=list[ChannelResponse])
async def list_channels(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService(db).list_channels(workspace_id, user)


@router.get("/channels/{channel_id}/messages", response_model=MessagePage)
async def list_messages(
    channel_id: UUID,
    before: datetime | None = Query(None),
    before_id: UUID | None = Query(None),
    limit: int | None = Query(None, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest page first; older pages via ?before=<next_cursor>&before_id=<next_cursor_id>."""
    return await ChatService(db).list_messages(channel_id, user, before, limit, before_id)


@router.post(
    "/channels/{channel_id}/messages", response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    channel_id: UUID,
    body: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService(db).post_message(channel_id, body, user)


@router.patch("/messages/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: UUID,
    body: MessageEdit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService(db).edit_message(message_id, body, user)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ChatService(db).delete_message(message_id, user)
