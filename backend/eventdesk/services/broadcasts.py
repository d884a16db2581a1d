"""Broadcast Service — workspace-wide announcements fanned out as notifications.

Invariants:
    - Sending needs MANAGE_WORKSPACE or MANAGE_CHANNELS on the workspace
    - Recipients are distinct ACTIVE members (of descendants too when
      include_children), excluding the sender
    - delivery_stats records workspaces reached and notifications created
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import MemberStatus, NotificationType, Permission
from eventdesk.models.broadcast import WorkspaceBroadcast
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.schemas.notification import BroadcastCreate
from eventdesk.services.guards import (
    get_workspace_or_404, require_member, require_permission,
)
from eventdesk.services.notifications import fan_out
from eventdesk.services.workspaces import collect_descendant_ids, ensure_not_dissolved

logger = logging.getLogger(__name__)


class BroadcastService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def send(
        self, workspace_id: UUID, body: BroadcastCreate, user: User,
    ) -> WorkspaceBroadcast:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(
            self.db, workspace_id, user,
            Permission.MANAGE_WORKSPACE, Permission.MANAGE_CHANNELS,
        )
        ensure_not_dissolved(workspace)

        scope = [workspace_id]
        if body.include_children:
            scope.extend(await collect_descendant_ids(self.db, workspace_id))
        result = await self.db.execute(
            select(TeamMember.user_id)
            .where(
                TeamMember.workspace_id.in_(scope),
                TeamMember.status == MemberStatus.ACTIVE.value,
                TeamMember.user_id != user.id,
            )
            .distinct(),
        )
        recipients = list(result.scalars().all())

        broadcast = WorkspaceBroadcast(
            workspace_id=workspace_id,
            sender_id=user.id,
            title=body.title,
            content=body.content,
            priority=body.priority.value,
            include_children=body.include_children,
        )
        self.db.add(broadcast)
        await self.db.flush()
        fan_out(self.db, [
            {
                "user_id": recipient,
                "type": NotificationType.BROADCAST.value,
                "title": body.title,
                "message": body.content,
                "link": f"/workspace/{workspace_id}",
                "metadata": {
                    "broadcast_id": str(broadcast.id),
                    "priority": body.priority.value,
                    "sent_by": str(user.id),
                },
            }
            for recipient in recipients
        ])
        broadcast.delivery_stats = {
            "workspaces": len(scope),
            "recipients": len(recipients),
            "sent_at": utc_now().isoformat(),
        }
        await self.db.commit()
        await self.db.refresh(broadcast)
        logger.info(
            f"Broadcast ({body.priority.value}) sent to {len(recipients)} members",
            extra={"workspace_id": workspace_id, "user_id": user.id},
        )
        return broadcast

    async def list_broadcasts(
        self, workspace_id: UUID, user: User,
    ) -> list[WorkspaceBroadcast]:
        await require_member(self.db, workspace_id, user)
        result = await self.db.execute(
            select(WorkspaceBroadcast)
            .where(WorkspaceBroadcast.workspace_id == workspace_id)
            .order_by(WorkspaceBroadcast.created_at.desc()),
        )
        return list(result.scalars().all())
