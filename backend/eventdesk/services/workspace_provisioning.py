"""Workspace Provisioning — creates an event's ROOT workspace, optionally from a template.

Invariants:
    - One ROOT workspace per event (409 ROOT_WORKSPACE_EXISTS otherwise)
    - ROOT goes PROVISIONING -> ACTIVE only after its owner, channels, and
      template structure are staged; everything commits in one transaction
    - The organizer is WORKSPACE_OWNER of the ROOT, the template's manager
      role in each DEPARTMENT, and TEAM_LEAD in each COMMITTEE
    - COMMITTEE-level template tasks are split over committees in contiguous
      chunks of ceil(n / committees); with no committees they land on ROOT

Design Decisions:
    - Single commit at the end: a failure mid-way leaves no half-built tree
      (DatabaseSessionManager rolls the session back)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import get_settings
from eventdesk.core.domain_types import (
    MemberStatus, TaskStatus, WorkspaceRole, WorkspaceStatus, WorkspaceType,
)
from eventdesk.core.errors import ConflictError, ErrorContext
from eventdesk.core.workspace_rules import (
    DEFAULT_CHANNELS, check_workspace_transition, chunk_for_committees,
    default_settings,
)
from eventdesk.core.workspace_templates import TemplateTask, get_template
from eventdesk.models.channel import WorkspaceChannel
from eventdesk.models.task import WorkspaceTask
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.models.workspace import Workspace, WorkspaceMilestone
from eventdesk.schemas.workspace import WorkspaceProvision
from eventdesk.services.guards import get_event_or_404, raise_conflict, require_organizer

logger = logging.getLogger(__name__)


class WorkspaceProvisioningService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def provision(self, body: WorkspaceProvision, user: User) -> dict:
        """Create the ROOT workspace tree. Returns the root plus created counts."""
        event = await get_event_or_404(self.db, body.event_id)
        require_organizer(event, user)
        await self._ensure_no_root(event.id)

        template = get_template(body.template)
        retention = (
            body.retention_period_days
            if body.retention_period_days is not None
            else get_settings().default_retention_days
        )
        settings = default_settings(retention)
        if template is not None:
            settings.update(template.settings)
            settings["template_id"] = template.id

        root = Workspace(
            event_id=event.id,
            name=body.name or f"{event.name} Workspace",
            description=f"Root workspace for {event.name}",
            workspace_type=WorkspaceType.ROOT.value,
            status=WorkspaceStatus.PROVISIONING.value,
            settings=settings,
            created_by=user.id,
        )
        self.db.add(root)
        await self.db.flush()

        self._add_member(root, user, WorkspaceRole.WORKSPACE_OWNER)
        for channel in DEFAULT_CHANNELS:
            self.db.add(WorkspaceChannel(
                workspace_id=root.id,
                name=channel["name"],
                type=channel["type"].value,
                description=channel["description"],
                created_by=user.id,
            ))

        departments, committees, milestones, tasks = 0, [], 0, 0
        if template is not None:
            for department in template.departments:
                dept = await self._create_child(
                    root, department.name, WorkspaceType.DEPARTMENT, user,
                )
                self._add_member(dept, user, department.manager_role)
                departments += 1
                for committee_name in department.committees:
                    committee = await self._create_child(
                        dept, committee_name, WorkspaceType.COMMITTEE, user,
                    )
                    self._add_member(committee, user, WorkspaceRole.TEAM_LEAD)
                    committees.append(committee)

            for order, (title, description) in enumerate(template.milestones):
                self.db.add(WorkspaceMilestone(
                    workspace_id=root.id, title=title,
                    description=description, sort_order=order,
                ))
                milestones += 1

            tasks = self._stage_tasks(root, committees, template.tasks, user)

        raise_conflict(check_workspace_transition(
            WorkspaceStatus(root.status), WorkspaceStatus.ACTIVE,
        ))
        root.status = WorkspaceStatus.ACTIVE.value
        await self.db.commit()
        await self.db.refresh(root)

        logger.info(
            f"Workspace provisioned (template={body.template or 'none'}, "
            f"departments={departments}, committees={len(committees)}, tasks={tasks})",
            extra={"event_id": event.id, "workspace_id": root.id},
        )
        return {
            "workspace": root,
            "departments_created": departments,
            "committees_created": len(committees),
            "tasks_created": tasks,
            "milestones_created": milestones,
        }

    async def _ensure_no_root(self, event_id) -> None:
        result = await self.db.execute(
            select(Workspace.id).where(
                Workspace.event_id == event_id,
                Workspace.parent_workspace_id.is_(None),
            ),
        )
        if result.first() is not None:
            raise ConflictError(
                "This event already has a root workspace",
                "ROOT_WORKSPACE_EXISTS",
                ErrorContext(event_id=str(event_id)),
            )

    async def _create_child(
        self, parent: Workspace, name: str, workspace_type: WorkspaceType, user: User,
    ) -> Workspace:
        child = Workspace(
            event_id=parent.event_id,
            parent_workspace_id=parent.id,
            name=name,
            workspace_type=workspace_type.value,
            status=WorkspaceStatus.ACTIVE.value,
            settings={"retention_period_days": parent.settings["retention_period_days"]},
            created_by=user.id,
        )
        self.db.add(child)
        await self.db.flush()
        return child

    def _add_member(self, workspace: Workspace, user: User, role: WorkspaceRole) -> None:
        self.db.add(TeamMember(
            workspace_id=workspace.id,
            user_id=user.id,
            role=role.value,
            status=MemberStatus.ACTIVE.value,
        ))

    def _stage_tasks(
        self,
        root: Workspace,
        committees: list[Workspace],
        template_tasks: tuple[TemplateTask, ...],
        user: User,
    ) -> int:
        root_tasks = [t for t in template_tasks if t.target_level == "ROOT"]
        committee_tasks = [t for t in template_tasks if t.target_level != "ROOT"]
        if not committees:
            root_tasks, committee_tasks = root_tasks + committee_tasks, []

        placements = [(root, t) for t in root_tasks]
        for committee, chunk in zip(
            committees, chunk_for_committees(committee_tasks, len(committees)),
        ):
            placements.extend((committee, t) for t in chunk)

        for workspace, task in placements:
            self.db.add(WorkspaceTask(
                workspace_id=workspace.id,
                title=task.title,
                description=task.description,
                status=TaskStatus.NOT_STARTED.value,
                priority=task.priority.value,
                category=task.category.value,
                created_by=user.id,
            ))
        return len(placements)
