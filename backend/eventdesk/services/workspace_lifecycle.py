"""Workspace Lifecycle — wind-down, dissolution, emergency revocation, early departure.

Invariants:
    - Transitions follow WORKSPACE_STATUS_TRANSITIONS; DISSOLVED is terminal
    - Dissolution needs a concluded event (ended, COMPLETED, or CANCELLED)
    - Dissolving marks every membership INACTIVE (left_at set) and stamps
      dissolved_at, for the workspace and all its descendants
    - Scheduled dissolution = event end + retention_period_days
    - process_automatic_dissolution isolates failures per workspace: one bad
      row is logged and skipped, the rest still dissolve

Design Decisions:
    - Lifecycle methods stage changes and commit at the end; the event
      status hook (apply_event_status) stages only, so the event change and
      its workspace consequences commit together
    - The periodic run is exposed as an admin endpoint instead of an
      in-process scheduler; cron or a platform job calls it
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    EventStatus, MemberStatus, NotificationType, Permission, TaskStatus,
    UserRole, WorkspaceStatus,
)
from eventdesk.core.errors import (
    BusinessRuleError, ErrorContext, EventDeskError, PermissionDeniedError,
)
from eventdesk.core.workspace_rules import (
    WORKSPACE_STATUS_TRANSITIONS, check_workspace_transition, days_until,
    event_has_concluded, reassignment_note, retention_days, scheduled_dissolution,
)
from eventdesk.models.event import Event
from eventdesk.models.task import WorkspaceTask
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.models.workspace import Workspace
from eventdesk.services.guards import (
    get_event_or_404, get_membership, get_workspace_or_404, raise_conflict,
    require_member, require_permission,
)
from eventdesk.services.notifications import fan_out
from eventdesk.services.workspaces import collect_descendant_ids

logger = logging.getLogger(__name__)


class WorkspaceLifecycleService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Manual transitions ───────────────────────────────────────

    async def initiate_wind_down(self, workspace_id: UUID, user: User) -> Workspace:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        if workspace.status != WorkspaceStatus.ACTIVE.value:
            raise BusinessRuleError(
                "Can only initiate wind-down for active workspaces",
                "WORKSPACE_NOT_ACTIVE",
                ErrorContext(workspace_id=str(workspace_id)),
            )
        event = await get_event_or_404(self.db, workspace.event_id)
        await self._wind_down(workspace, event)
        await self.db.commit()
        await self.db.refresh(workspace)
        return workspace

    async def reactivate(self, workspace_id: UUID, user: User) -> Workspace:
        """WINDING_DOWN -> ACTIVE, e.g. when an event is extended."""
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        raise_conflict(check_workspace_transition(
            WorkspaceStatus(workspace.status), WorkspaceStatus.ACTIVE,
        ))
        workspace.status = WorkspaceStatus.ACTIVE.value
        await self.db.commit()
        await self.db.refresh(workspace)
        logger.info("Workspace reactivated", extra={"workspace_id": workspace_id})
        return workspace

    async def dissolve(
        self, workspace_id: UUID, user: User, retention_override: int | None = None,
    ) -> Workspace:
        """Schedule dissolution (WINDING_DOWN); retention 0 dissolves immediately."""
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        event = await get_event_or_404(self.db, workspace.event_id)
        if not event_has_concluded(EventStatus(event.status), event.end_date, utc_now()):
            raise BusinessRuleError(
                "Cannot dissolve workspace before event completion or cancellation",
                "EVENT_NOT_CONCLUDED",
                ErrorContext(workspace_id=str(workspace_id), event_id=str(event.id)),
            )
        if workspace.status == WorkspaceStatus.DISSOLVED.value:
            raise_conflict(check_workspace_transition(
                WorkspaceStatus.DISSOLVED, WorkspaceStatus.WINDING_DOWN,
            ))

        if retention_override is not None:
            workspace.settings = {
                **workspace.settings, "retention_period_days": retention_override,
            }
        if workspace.status == WorkspaceStatus.ACTIVE.value:
            await self._wind_down(workspace, event)

        retention = retention_days(workspace.settings)
        if retention == 0:
            await self._perform_dissolution(workspace)
        else:
            logger.info(
                f"Dissolution scheduled for "
                f"{scheduled_dissolution(event.end_date, retention).isoformat()}",
                extra={"workspace_id": workspace_id, "user_id": user.id},
            )
        await self.db.commit()
        await self.db.refresh(workspace)
        return workspace

    async def emergency_revoke(
        self, workspace_id: UUID, user: User, reason: str,
    ) -> Workspace:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        raise_conflict(check_workspace_transition(
            WorkspaceStatus(workspace.status), WorkspaceStatus.DISSOLVED,
        ))
        logger.warning(
            f"Emergency access revocation: {reason}",
            extra={"workspace_id": workspace_id, "user_id": user.id},
        )
        await self._perform_dissolution(workspace)
        await self.db.commit()
        await self.db.refresh(workspace)
        return workspace

    async def early_departure(
        self, workspace_id: UUID, departing_user_id: UUID, manager_id: UUID, user: User,
    ) -> int:
        """Deactivate a member and hand their unfinished tasks to manager_id.

        Returns the number of reassigned tasks.
        """
        await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_TEAM)

        departing = await get_membership(self.db, workspace_id, departing_user_id)
        if departing is None or departing.status != MemberStatus.ACTIVE.value:
            raise BusinessRuleError(
                "Team member not found or already inactive", "MEMBER_NOT_ACTIVE",
                ErrorContext(workspace_id=str(workspace_id), user_id=str(departing_user_id)),
            )
        manager = await get_membership(self.db, workspace_id, manager_id)
        if manager is None or manager.status != MemberStatus.ACTIVE.value:
            raise BusinessRuleError(
                "Manager is not an active member of this workspace",
                "MANAGER_NOT_ACTIVE",
                ErrorContext(workspace_id=str(workspace_id), user_id=str(manager_id)),
            )

        now = utc_now()
        departing.status = MemberStatus.INACTIVE.value
        departing.left_at = now

        result = await self.db.execute(
            select(WorkspaceTask).where(
                WorkspaceTask.workspace_id == workspace_id,
                WorkspaceTask.assigned_to == departing_user_id,
                WorkspaceTask.status != TaskStatus.COMPLETED.value,
            ),
        )
        tasks = list(result.scalars().all())
        for task in tasks:
            task.assigned_to = manager_id
            task.description = reassignment_note(task.description, str(manager_id))

        await self.db.commit()
        logger.info(
            f"Reassigned {len(tasks)} tasks after early departure",
            extra={"workspace_id": workspace_id, "user_id": departing_user_id},
        )
        return len(tasks)

    # ─── Status & scheduled run ───────────────────────────────────

    async def lifecycle_status(self, workspace_id: UUID, user: User) -> dict:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_member(self.db, workspace_id, user)
        event = await get_event_or_404(self.db, workspace.event_id)
        retention = retention_days(workspace.settings)
        dissolution_at = scheduled_dissolution(event.end_date, retention)
        return {
            "workspace_id": workspace.id,
            "status": WorkspaceStatus(workspace.status),
            "allowed_transitions": WORKSPACE_STATUS_TRANSITIONS[
                WorkspaceStatus(workspace.status)
            ],
            "retention_period_days": retention,
            "event_end_date": event.end_date,
            "scheduled_dissolution_at": dissolution_at,
            "days_until_dissolution": days_until(dissolution_at, utc_now()),
            "dissolved_at": workspace.dissolved_at,
        }

    async def process_automatic_dissolution(self, user: User) -> dict:
        if user.role != UserRole.SUPER_ADMIN.value:
            raise PermissionDeniedError(
                "Only platform administrators can run scheduled dissolutions",
                ErrorContext(user_id=str(user.id)),
            )
        result = await self.db.execute(
            select(Workspace.id, Workspace.settings, Event.end_date, Event.status)
            .join(Event, Event.id == Workspace.event_id)
            .where(Workspace.status == WorkspaceStatus.WINDING_DOWN.value),
        )
        candidates = result.all()
        now = utc_now()
        dissolved, failed = [], []

        for workspace_id, settings, end_date, event_status in candidates:
            if not event_has_concluded(EventStatus(event_status), end_date, now):
                continue
            due_at = scheduled_dissolution(end_date, retention_days(settings))
            if due_at > now:
                logger.info(
                    f"Dissolution due in {days_until(due_at, now)} days",
                    extra={"workspace_id": workspace_id},
                )
                continue
            try:
                workspace = await get_workspace_or_404(self.db, workspace_id)
                await self._perform_dissolution(workspace)
                await self.db.commit()
                dissolved.append(workspace_id)
            except (EventDeskError, SQLAlchemyError) as e:
                await self.db.rollback()
                failed.append(workspace_id)
                logger.error(
                    f"Automatic dissolution failed: {e}",
                    extra={"workspace_id": workspace_id},
                )

        logger.info(
            f"Automatic dissolution run: {len(candidates)} candidates, "
            f"{len(dissolved)} dissolved, {len(failed)} failed",
        )
        return {"processed": len(candidates), "dissolved": dissolved, "failed": failed}

    # ─── Event status hook ────────────────────────────────────────

    async def apply_event_status(self, event: Event, new_status: EventStatus) -> None:
        """Stage workspace consequences of an event status change (no commit).

        COMPLETED winds the ROOT workspace down; CANCELLED dissolves it.
        """
        result = await self.db.execute(
            select(Workspace).where(
                Workspace.event_id == event.id,
                Workspace.parent_workspace_id.is_(None),
            ),
        )
        root = result.scalar_one_or_none()
        if root is None:
            return
        if new_status == EventStatus.COMPLETED and root.status == WorkspaceStatus.ACTIVE.value:
            await self._wind_down(root, event)
        elif new_status == EventStatus.CANCELLED and root.status != WorkspaceStatus.DISSOLVED.value:
            await self._perform_dissolution(root)

    # ─── Internals ────────────────────────────────────────────────

    async def _wind_down(self, workspace: Workspace, event: Event) -> None:
        workspace.status = WorkspaceStatus.WINDING_DOWN.value
        result = await self.db.execute(
            select(TeamMember.user_id).where(
                TeamMember.workspace_id == workspace.id,
                TeamMember.status == MemberStatus.ACTIVE.value,
            ),
        )
        recipients = list(result.scalars().all())
        fan_out(self.db, [
            {
                "user_id": user_id,
                "type": NotificationType.WIND_DOWN.value,
                "title": f"{workspace.name} is winding down",
                "message": (
                    f"The workspace for {event.name} is winding down and will be "
                    f"dissolved after the retention period."
                ),
                "link": f"/workspace/{workspace.id}",
                "metadata": {
                    "workspace_id": str(workspace.id),
                    "event_id": str(event.id),
                    "event_end_date": event.end_date.isoformat(),
                },
            }
            for user_id in recipients
        ])
        logger.info(
            f"Wind-down initiated, {len(recipients)} members notified",
            extra={"workspace_id": workspace.id, "event_id": event.id},
        )

    async def _perform_dissolution(self, workspace: Workspace) -> None:
        now = utc_now()
        ids = [workspace.id, *await collect_descendant_ids(self.db, workspace.id)]
        await self.db.execute(
            update(TeamMember)
            .where(
                TeamMember.workspace_id.in_(ids),
                TeamMember.status != MemberStatus.INACTIVE.value,
            )
            .values(status=MemberStatus.INACTIVE.value, left_at=now),
        )
        await self.db.execute(
            update(Workspace)
            .where(
                Workspace.id.in_(ids),
                Workspace.status != WorkspaceStatus.DISSOLVED.value,
            )
            .values(status=WorkspaceStatus.DISSOLVED.value, dissolved_at=now),
        )
        workspace.status = WorkspaceStatus.DISSOLVED.value
        workspace.dissolved_at = now
        logger.info(
            f"Workspace dissolved ({len(ids)} including descendants)",
            extra={"workspace_id": workspace.id},
        )
