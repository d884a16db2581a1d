"""Workspace Service — hierarchy, details, and team membership.

Invariants:
    - Reading a workspace requires ACTIVE membership
    - Child creation follows CHILD_WORKSPACE_TYPE and needs MANAGE_WORKSPACE
      on the parent; the creator joins the child as WORKSPACE_OWNER
    - Inviting, re-roling, and listing members need MANAGE_TEAM or INVITE_MEMBERS
    - A user has at most one membership row per workspace; re-inviting an
      INACTIVE member reactivates the existing row
    - DISSOLVED workspaces are read-only
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    MemberStatus, Permission, TaskStatus, WorkspaceRole, WorkspaceStatus,
    WorkspaceType,
)
from eventdesk.core.errors import (
    BusinessRuleError, ConflictError, ErrorContext, ResourceNotFoundError,
)
from eventdesk.core.task_rules import summarize_tasks
from eventdesk.core.workspace_rules import effective_permissions, validate_child_type
from eventdesk.models.task import WorkspaceTask
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.models.workspace import Workspace, WorkspaceMilestone
from eventdesk.schemas.workspace import (
    ChildWorkspaceCreate, MemberInvite, MemberUpdate, WorkspaceUpdate,
)
from eventdesk.services.guards import (
    get_membership, get_or_404, get_user_or_404, get_workspace_or_404,
    raise_business, require_member, require_permission,
)

logger = logging.getLogger(__name__)


async def collect_descendant_ids(db: AsyncSession, workspace_id: UUID) -> list[UUID]:
    """All workspace ids below workspace_id, breadth first (excludes itself)."""
    found: list[UUID] = []
    frontier = [workspace_id]
    while frontier:
        result = await db.execute(
            select(Workspace.id).where(Workspace.parent_workspace_id.in_(frontier)),
        )
        frontier = list(result.scalars().all())
        found.extend(frontier)
    return found


def ensure_not_dissolved(workspace: Workspace) -> None:
    if workspace.status == WorkspaceStatus.DISSOLVED.value:
        raise BusinessRuleError(
            "Workspace is dissolved and read-only",
            "WORKSPACE_DISSOLVED",
            ErrorContext(workspace_id=str(workspace.id)),
        )


class WorkspaceService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Workspaces ───────────────────────────────────────────────

    async def get_workspace(self, workspace_id: UUID, user: User) -> dict:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        member = await require_member(self.db, workspace_id, user)
        rows = await self.db.execute(
            select(WorkspaceTask.status, WorkspaceTask.due_date)
            .where(WorkspaceTask.workspace_id == workspace_id),
        )
        summary = summarize_tasks(
            [(TaskStatus(status), due) for status, due in rows.all()], utc_now(),
        )
        role = WorkspaceRole(member.role)
        return {
            "workspace": workspace,
            "task_summary": summary,
            "my_role": role,
            "my_permissions": sorted(effective_permissions(role, member.permissions)),
        }

    async def list_my_workspaces(self, user: User) -> list[Workspace]:
        result = await self.db.execute(
            select(Workspace)
            .join(TeamMember, TeamMember.workspace_id == Workspace.id)
            .where(
                TeamMember.user_id == user.id,
                TeamMember.status == MemberStatus.ACTIVE.value,
            )
            .order_by(Workspace.created_at),
        )
        return list(result.scalars().all())

    async def update_workspace(
        self, workspace_id: UUID, body: WorkspaceUpdate, user: User,
    ) -> Workspace:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        ensure_not_dissolved(workspace)
        changes = body.model_dump(exclude_unset=True)
        if changes.get("name") is not None:
            workspace.name = changes["name"]
        if "description" in changes:
            workspace.description = changes["description"]
        if changes.get("settings") is not None:
            # Merge so keys the caller did not send survive.
            workspace.settings = {**workspace.settings, **changes["settings"]}
        await self.db.commit()
        await self.db.refresh(workspace)
        return workspace

    async def create_child(
        self, parent_id: UUID, body: ChildWorkspaceCreate, user: User,
    ) -> Workspace:
        parent = await get_workspace_or_404(self.db, parent_id)
        await require_permission(self.db, parent_id, user, Permission.MANAGE_WORKSPACE)
        ensure_not_dissolved(parent)
        raise_business(validate_child_type(
            WorkspaceType(parent.workspace_type), body.workspace_type,
        ))
        child = Workspace(
            event_id=parent.event_id,
            parent_workspace_id=parent.id,
            name=body.name,
            description=body.description,
            workspace_type=body.workspace_type.value,
            status=WorkspaceStatus.ACTIVE.value,
            settings={
                "retention_period_days": parent.settings.get("retention_period_days"),
            },
            created_by=user.id,
        )
        self.db.add(child)
        await self.db.flush()
        self.db.add(TeamMember(
            workspace_id=child.id,
            user_id=user.id,
            role=WorkspaceRole.WORKSPACE_OWNER.value,
            status=MemberStatus.ACTIVE.value,
            invited_by=user.id,
        ))
        await self.db.commit()
        await self.db.refresh(child)
        logger.info(
            f"Child workspace created ({body.workspace_type.value})",
            extra={"workspace_id": child.id, "user_id": user.id},
        )
        return child

    async def list_children(self, workspace_id: UUID, user: User) -> list[Workspace]:
        await get_workspace_or_404(self.db, workspace_id)
        await require_member(self.db, workspace_id, user)
        result = await self.db.execute(
            select(Workspace)
            .where(Workspace.parent_workspace_id == workspace_id)
            .order_by(Workspace.created_at),
        )
        return list(result.scalars().all())

    async def list_milestones(
        self, workspace_id: UUID, user: User,
    ) -> list[WorkspaceMilestone]:
        await require_member(self.db, workspace_id, user)
        result = await self.db.execute(
            select(WorkspaceMilestone)
            .where(WorkspaceMilestone.workspace_id == workspace_id)
            .order_by(WorkspaceMilestone.sort_order),
        )
        return list(result.scalars().all())

    # ─── Members ──────────────────────────────────────────────────

    async def invite_member(
        self, workspace_id: UUID, body: MemberInvite, user: User,
    ) -> TeamMember:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(
            self.db, workspace_id, user,
            Permission.MANAGE_TEAM, Permission.INVITE_MEMBERS,
        )
        ensure_not_dissolved(workspace)
        await get_user_or_404(self.db, body.user_id)
        permissions = (
            [p.value for p in body.permissions] if body.permissions is not None else None
        )

        existing = await get_membership(self.db, workspace_id, body.user_id)
        if existing is not None and existing.status != MemberStatus.INACTIVE.value:
            raise ConflictError(
                "User is already a member of this workspace", "ALREADY_MEMBER",
                ErrorContext(workspace_id=str(workspace_id), user_id=str(body.user_id)),
            )
        if existing is not None:
            member = existing
            member.status = MemberStatus.ACTIVE.value
            member.left_at = None
            member.joined_at = utc_now()
        else:
            member = TeamMember(
                workspace_id=workspace_id,
                user_id=body.user_id,
                status=MemberStatus.ACTIVE.value,
            )
            self.db.add(member)
        member.role = body.role.value
        member.permissions = permissions
        member.invited_by = user.id

        await self.db.commit()
        await self.db.refresh(member)
        logger.info(
            f"Member added as {body.role.value}",
            extra={"workspace_id": workspace_id, "user_id": body.user_id},
        )
        return member

    async def update_member(
        self, workspace_id: UUID, member_id: UUID, body: MemberUpdate, user: User,
    ) -> TeamMember:
        await require_permission(
            self.db, workspace_id, user,
            Permission.MANAGE_TEAM, Permission.INVITE_MEMBERS,
        )
        member = await get_or_404(self.db, TeamMember, member_id, "TeamMember")
        if member.workspace_id != workspace_id:
            raise ResourceNotFoundError("TeamMember", str(member_id))
        member.role = body.role.value
        member.permissions = (
            [p.value for p in body.permissions] if body.permissions is not None else None
        )
        await self.db.commit()
        await self.db.refresh(member)
        return member

    async def list_members(
        self, workspace_id: UUID, user: User, include_inactive: bool = False,
    ) -> list[TeamMember]:
        await require_permission(
            self.db, workspace_id, user,
            Permission.MANAGE_TEAM, Permission.INVITE_MEMBERS,
        )
        query = select(TeamMember).where(TeamMember.workspace_id == workspace_id)
        if not include_inactive:
            query = query.where(TeamMember.status == MemberStatus.ACTIVE.value)
        result = await self.db.execute(query.order_by(TeamMember.joined_at))
        return list(result.scalars().all())
