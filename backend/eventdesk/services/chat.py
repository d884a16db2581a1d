"""Chat Service — workspace channels, paginated messages, and mention fan-out.

Invariants:
    - Public channels: any ACTIVE workspace member; private channels: only
      channel members
    - Message pages are fetched newest-first with limit + 1 rows to detect
      has_more, then returned in chronological order
    - Reading a page upserts the caller's last_read_at for the channel
    - Mentions (@[Name](user-id)) notify each distinct existing user once,
      never the sender
    - Only the sender edits; the sender or a MANAGE_CHANNELS member deletes

Design Decisions:
    - Cursor is the created_at of the oldest message returned: stable under
      concurrent posting, unlike offset pagination
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import get_settings
from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import MemberStatus, Permission
from eventdesk.core.errors import (
    ConflictError, ErrorContext, PermissionDeniedError,
    ResourceNotFoundError,
)
from eventdesk.core.mentions import build_mention_notifications, parse_mentions
from eventdesk.models.channel import ChannelMember, ChannelMessage, WorkspaceChannel
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.schemas.channel import ChannelCreate, MessageCreate, MessageEdit
from eventdesk.services.guards import (
    get_membership, get_or_404, get_workspace_or_404, member_has, require_member,
    require_permission,
)
from eventdesk.services.notifications import fan_out
from eventdesk.services.workspaces import ensure_not_dissolved

logger = logging.getLogger(__name__)


class ChatService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Channels ─────────────────────────────────────────────────

    async def create_channel(
        self, workspace_id: UUID, body: ChannelCreate, user: User,
    ) -> WorkspaceChannel:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_CHANNELS)
        ensure_not_dissolved(workspace)
        taken = await self.db.execute(
            select(WorkspaceChannel.id).where(
                WorkspaceChannel.workspace_id == workspace_id,
                WorkspaceChannel.name == body.name,
            ),
        )
        if taken.first() is not None:
            raise ConflictError(f"Channel #{body.name} already exists", "CHANNEL_EXISTS")

        channel = WorkspaceChannel(
            workspace_id=workspace_id,
            name=body.name,
            type=body.type.value,
            description=body.description,
            is_private=body.is_private,
            created_by=user.id,
        )
        self.db.add(channel)
        await self.db.flush()
        if body.is_private:
            member_ids = {user.id, *body.member_ids}
            active = await self.db.execute(
                select(TeamMember.user_id).where(
                    TeamMember.workspace_id == workspace_id,
                    TeamMember.user_id.in_(member_ids),
                    TeamMember.status == MemberStatus.ACTIVE.value,
                ),
            )
            for member_id in active.scalars().all():
                self.db.add(ChannelMember(channel_id=channel.id, user_id=member_id))
        await self.db.commit()
        await self.db.refresh(channel)
        logger.info(
            f"Channel #{channel.name} created", extra={"workspace_id": workspace_id},
        )
        return channel

    async def list_channels(self, workspace_id: UUID, user: User) -> list[WorkspaceChannel]:
        await require_member(self.db, workspace_id, user)
        joined = select(ChannelMember.channel_id).where(ChannelMember.user_id == user.id)
        result = await self.db.execute(
            select(WorkspaceChannel)
            .where(
                WorkspaceChannel.workspace_id == workspace_id,
                or_(
                    WorkspaceChannel.is_private.is_(False),
                    WorkspaceChannel.id.in_(joined),
                ),
            )
            .order_by(WorkspaceChannel.name),
        )
        return list(result.scalars().all())

    # ─── Messages ─────────────────────────────────────────────────

    async def list_messages(
        self,
        channel_id: UUID,
        user: User,
        before: datetime | None = None,
        limit: int | None = None,
        before_id: UUID | None = None,
    ) -> dict:
        """One page, oldest first. The cursor is (created_at, id) of the oldest row
        returned, so rows sharing a timestamp are split across pages, not skipped.
        """
        channel = await self._get_accessible_channel(channel_id, user)
        limit = limit or get_settings().message_page_size
        query = select(ChannelMessage).where(ChannelMessage.channel_id == channel.id)
        if before is not None and before_id is not None:
            query = query.where(or_(
                ChannelMessage.created_at < before,
                and_(ChannelMessage.created_at == before, ChannelMessage.id < before_id),
            ))
        elif before is not None:
            query = query.where(ChannelMessage.created_at < before)
        result = await self.db.execute(
            query.order_by(ChannelMessage.created_at.desc(), ChannelMessage.id.desc())
            .limit(limit + 1),
        )
        rows = list(result.scalars().all())
        has_more = len(rows) > limit
        page = list(reversed(rows[:limit]))

        await self._mark_read(channel.id, user.id)
        await self.db.commit()
        return {
            "messages": page,
            "has_more": has_more,
            "next_cursor": page[0].created_at if has_more and page else None,
            "next_cursor_id": page[0].id if has_more and page else None,
        }

    async def post_message(
        self, channel_id: UUID, body: MessageCreate, user: User,
    ) -> ChannelMessage:
        channel = await self._get_accessible_channel(channel_id, user)
        workspace = await get_workspace_or_404(self.db, channel.workspace_id)
        ensure_not_dissolved(workspace)
        if body.reply_to_id is not None:
            parent = await self.db.get(ChannelMessage, body.reply_to_id)
            if parent is None or parent.channel_id != channel.id:
                raise ResourceNotFoundError("ChannelMessage", str(body.reply_to_id))

        message = ChannelMessage(
            channel_id=channel.id,
            sender_id=user.id,
            sender_name=user.full_name,
            content=body.content,
            message_type="reply" if body.reply_to_id else "text",
            reply_to_id=body.reply_to_id,
            attachments=body.attachments,
        )
        self.db.add(message)
        await self.db.flush()

        mentioned = await self._existing_users(parse_mentions(body.content))
        notifications = fan_out(self.db, build_mention_notifications(
            content=body.content,
            mentioned_ids=mentioned,
            sender_id=user.id,
            sender_name=user.full_name,
            channel_id=channel.id,
            channel_name=channel.name,
            workspace_id=channel.workspace_id,
            message_id=message.id,
        ))
        channel.updated_at = utc_now()
        await self.db.commit()
        await self.db.refresh(message)
        if notifications:
            logger.info(
                f"Message posted with {len(notifications)} mention notifications",
                extra={"workspace_id": channel.workspace_id, "user_id": user.id},
            )
        return message

    async def edit_message(
        self, message_id: UUID, body: MessageEdit, user: User,
    ) -> ChannelMessage:
        message = await get_or_404(self.db, ChannelMessage, message_id, "ChannelMessage")
        if message.sender_id != user.id:
            raise PermissionDeniedError(
                "Only the sender can edit a message", ErrorContext(user_id=str(user.id)),
            )
        message.content = body.content
        message.is_edited = True
        message.edited_at = utc_now()
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def delete_message(self, message_id: UUID, user: User) -> None:
        message = await get_or_404(self.db, ChannelMessage, message_id, "ChannelMessage")
        if message.sender_id != user.id:
            channel = await get_or_404(self.db, WorkspaceChannel, message.channel_id, "Channel")
            member = await get_membership(self.db, channel.workspace_id, user.id)
            if (
                member is None
                or member.status != MemberStatus.ACTIVE.value
                or not member_has(member, Permission.MANAGE_CHANNELS)
            ):
                raise PermissionDeniedError(
                    "Only the sender or a channel manager can delete a message",
                    ErrorContext(workspace_id=str(channel.workspace_id), user_id=str(user.id)),
                )
        await self.db.delete(message)
        await self.db.commit()

    # ─── Internals ────────────────────────────────────────────────

    async def _get_accessible_channel(self, channel_id: UUID, user: User) -> WorkspaceChannel:
        channel = await get_or_404(self.db, WorkspaceChannel, channel_id, "Channel")
        await require_member(self.db, channel.workspace_id, user)
        if channel.is_private and await self._channel_member(channel.id, user.id) is None:
            raise PermissionDeniedError(
                "This channel is private",
                ErrorContext(workspace_id=str(channel.workspace_id), user_id=str(user.id)),
            )
        return channel

    async def _channel_member(self, channel_id: UUID, user_id: UUID) -> ChannelMember | None:
        result = await self.db.execute(
            select(ChannelMember).where(
                ChannelMember.channel_id == channel_id,
                ChannelMember.user_id == user_id,
            ),
        )
        return result.scalar_one_or_none()

    async def _mark_read(self, channel_id: UUID, user_id: UUID) -> None:
        membership = await self._channel_member(channel_id, user_id)
        if membership is None:
            membership = ChannelMember(channel_id=channel_id, user_id=user_id)
            self.db.add(membership)
        membership.last_read_at = utc_now()

    async def _existing_users(self, user_ids: list[UUID]) -> list[UUID]:
        if not user_ids:
            return []
        result = await self.db.execute(select(User.id).where(User.id.in_(user_ids)))
        found = set(result.scalars().all())
        return [uid for uid in user_ids if uid in found]
