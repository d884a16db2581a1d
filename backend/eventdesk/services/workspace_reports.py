"""Workspace Reports — tasks, team, activity, and comprehensive exports as JSON or CSV.

Invariants:
    - Requires VIEW_ANALYTICS on the workspace the report is requested for
    - include_children widens the scope to every descendant workspace
    - date_from/date_to filter on created_at (tasks, activity) or joined_at (team)
    - Activity rows are capped at ACTIVITY_LIMIT, newest first
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import Permission
from eventdesk.core.report_rules import (
    REPORT_COLUMNS, comprehensive_csv, report_filename, to_csv,
)
from eventdesk.models.task import TaskActivity, WorkspaceTask
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.schemas.workspace import ReportRequest
from eventdesk.services.guards import get_workspace_or_404, require_permission
from eventdesk.services.workspaces import collect_descendant_ids

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 1000


class WorkspaceReportService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def generate(self, workspace_id: UUID, body: ReportRequest, user: User) -> dict:
        """Build report rows. Returns {report_type, filename, data, csv?}."""
        await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.VIEW_ANALYTICS)

        scope = [workspace_id]
        if body.include_children:
            scope.extend(await collect_descendant_ids(self.db, workspace_id))

        builders = {
            "tasks": self._tasks_rows,
            "team": self._team_rows,
            "activity": self._activity_rows,
        }
        if body.report_type == "comprehensive":
            sections = {
                name: await build(scope, body.date_from, body.date_to)
                for name, build in builders.items()
            }
            data: dict | list = sections
            csv_text = comprehensive_csv(sections) if body.format == "csv" else None
        else:
            data = await builders[body.report_type](scope, body.date_from, body.date_to)
            csv_text = (
                to_csv(data, REPORT_COLUMNS[body.report_type])
                if body.format == "csv" else None
            )

        now = utc_now()
        logger.info(
            f"Report generated: {body.report_type} ({body.format}), "
            f"{len(scope)} workspaces",
            extra={"workspace_id": workspace_id, "user_id": user.id},
        )
        return {
            "report_type": body.report_type,
            "generated_at": now,
            "workspace_ids": scope,
            "filename": report_filename(body.report_type, now),
            "data": data,
            "csv": csv_text,
        }

    async def _tasks_rows(
        self, scope: list[UUID], date_from: datetime | None, date_to: datetime | None,
    ) -> list[dict]:
        query = select(WorkspaceTask).where(WorkspaceTask.workspace_id.in_(scope))
        if date_from is not None:
            query = query.where(WorkspaceTask.created_at >= date_from)
        if date_to is not None:
            query = query.where(WorkspaceTask.created_at <= date_to)
        result = await self.db.execute(query.order_by(WorkspaceTask.created_at.desc()))
        return [
            {col: getattr(task, col) for col in REPORT_COLUMNS["tasks"]}
            for task in result.scalars().all()
        ]

    async def _team_rows(
        self, scope: list[UUID], date_from: datetime | None, date_to: datetime | None,
    ) -> list[dict]:
        query = (
            select(TeamMember, User)
            .join(User, User.id == TeamMember.user_id)
            .where(TeamMember.workspace_id.in_(scope))
        )
        if date_from is not None:
            query = query.where(TeamMember.joined_at >= date_from)
        if date_to is not None:
            query = query.where(TeamMember.joined_at <= date_to)
        result = await self.db.execute(query.order_by(TeamMember.joined_at))
        return [
            {
                "id": member.id,
                "user_id": member.user_id,
                "name": person.full_name,
                "email": person.email,
                "role": member.role,
                "status": member.status,
                "joined_at": member.joined_at,
                "workspace_id": member.workspace_id,
            }
            for member, person in result.all()
        ]

    async def _activity_rows(
        self, scope: list[UUID], date_from: datetime | None, date_to: datetime | None,
    ) -> list[dict]:
        query = select(TaskActivity).where(TaskActivity.workspace_id.in_(scope))
        if date_from is not None:
            query = query.where(TaskActivity.created_at >= date_from)
        if date_to is not None:
            query = query.where(TaskActivity.created_at <= date_to)
        result = await self.db.execute(
            query.order_by(TaskActivity.created_at.desc()).limit(ACTIVITY_LIMIT),
        )
        return [
            {col: getattr(activity, col) for col in REPORT_COLUMNS["activity"]}
            for activity in result.scalars().all()
        ]
