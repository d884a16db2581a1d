"""Task Service — workspace task board, progress, dependencies, comments, history.

Invariants:
    - Every mutation appends one TaskActivity row in the same commit
    - Assignees must be ACTIVE members of the task's workspace
    - COMPLETED <=> progress 100; completed_at set on entering COMPLETED,
      cleared on leaving it
    - IN_PROGRESS/COMPLETED are blocked while any dependency is unfinished
    - Dependencies stay inside one workspace and never form a cycle

Design Decisions:
    - Dependency edges are loaded per workspace and checked in memory
      (core/task_rules.creates_cycle): boards hold at most a few hundred tasks
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    MemberStatus, NotificationType, Permission, TaskCategory, TaskPriority,
    TaskStatus, WorkspaceRole,
)
from eventdesk.core.errors import (
    BusinessRuleError, ErrorContext, PermissionDeniedError, ResourceNotFoundError,
)
from eventdesk.core.task_rules import (
    can_update_progress, check_dependencies_finished, resolve_progress,
    validate_dependency, validate_progress,
)
from eventdesk.models.task import (
    TaskActivity, TaskComment, TaskDependency, WorkspaceTask,
)
from eventdesk.models.user import User
from eventdesk.schemas.task import (
    CommentCreate, TaskCreate, TaskProgressUpdate, TaskUpdate,
)
from eventdesk.services.guards import (
    get_membership, get_or_404, get_workspace_or_404, raise_business,
    raise_conflict, raise_validation, require_member, require_permission,
)
from eventdesk.services.notifications import fan_out
from eventdesk.services.workspaces import ensure_not_dissolved

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── CRUD ─────────────────────────────────────────────────────

    async def create_task(
        self, workspace_id: UUID, body: TaskCreate, user: User,
    ) -> WorkspaceTask:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(
            self.db, workspace_id, user,
            Permission.CREATE_TASKS, Permission.MANAGE_TASKS,
        )
        ensure_not_dissolved(workspace)
        if body.assigned_to is not None:
            await self._require_active_assignee(workspace_id, body.assigned_to)

        task = WorkspaceTask(
            workspace_id=workspace_id,
            title=body.title,
            description=body.description,
            status=TaskStatus.NOT_STARTED.value,
            priority=body.priority.value,
            category=body.category.value,
            progress=0,
            assigned_to=body.assigned_to,
            created_by=user.id,
            due_date=body.due_date,
        )
        self.db.add(task)
        await self.db.flush()
        self._log(task, user, "created", f"Task created: {task.title}")
        if body.assigned_to is not None:
            self._notify_assignee(task, user)
        await self.db.commit()
        await self.db.refresh(task)
        logger.info("Task created", extra={"workspace_id": workspace_id, "user_id": user.id})
        return task

    async def get_task(self, task_id: UUID, user: User) -> WorkspaceTask:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_member(self.db, task.workspace_id, user)
        return task

    async def list_tasks(
        self,
        workspace_id: UUID,
        user: User,
        status: TaskStatus | None = None,
        assigned_to: UUID | None = None,
        category: TaskCategory | None = None,
        priority: TaskPriority | None = None,
    ) -> list[WorkspaceTask]:
        await require_member(self.db, workspace_id, user)
        query = select(WorkspaceTask).where(WorkspaceTask.workspace_id == workspace_id)
        if status is not None:
            query = query.where(WorkspaceTask.status == status.value)
        if assigned_to is not None:
            query = query.where(WorkspaceTask.assigned_to == assigned_to)
        if category is not None:
            query = query.where(WorkspaceTask.category == category.value)
        if priority is not None:
            query = query.where(WorkspaceTask.priority == priority.value)
        result = await self.db.execute(query.order_by(WorkspaceTask.created_at.desc()))
        return list(result.scalars().all())

    async def update_task(
        self, task_id: UUID, body: TaskUpdate, user: User,
    ) -> WorkspaceTask:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_permission(self.db, task.workspace_id, user, Permission.MANAGE_TASKS)
        changes = body.model_dump(exclude_unset=True)
        for key in ("title", "priority", "category"):
            if changes.get(key) is None:
                changes.pop(key, None)
        for key, value in changes.items():
            setattr(task, key, value.value if hasattr(value, "value") else value)
        if changes:
            self._log(
                task, user, "updated", f"Updated {', '.join(sorted(changes))}",
                {"fields": sorted(changes)},
            )
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def delete_task(self, task_id: UUID, user: User) -> None:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_permission(self.db, task.workspace_id, user, Permission.MANAGE_TASKS)
        await self.db.delete(task)
        await self.db.commit()
        logger.info(
            f"Task {task_id} deleted",
            extra={"workspace_id": task.workspace_id, "user_id": user.id},
        )

    # ─── Assignment & progress ────────────────────────────────────

    async def assign_task(
        self, task_id: UUID, assigned_to: UUID | None, user: User,
    ) -> WorkspaceTask:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_permission(self.db, task.workspace_id, user, Permission.MANAGE_TASKS)
        if assigned_to is not None:
            await self._require_active_assignee(task.workspace_id, assigned_to)
        previous = task.assigned_to
        task.assigned_to = assigned_to
        self._log(
            task, user, "assigned",
            "Task unassigned" if assigned_to is None else "Task assigned",
            {
                "from": str(previous) if previous else None,
                "to": str(assigned_to) if assigned_to else None,
            },
        )
        if assigned_to is not None and assigned_to != previous:
            self._notify_assignee(task, user)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def update_progress(
        self, task_id: UUID, body: TaskProgressUpdate, user: User,
    ) -> WorkspaceTask:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        member = await require_member(self.db, task.workspace_id, user)
        if not can_update_progress(
            WorkspaceRole(member.role), member.permissions, task.assigned_to, user.id,
        ):
            raise PermissionDeniedError(
                "You can only update progress on tasks assigned to you",
                ErrorContext(workspace_id=str(task.workspace_id), user_id=str(user.id)),
            )

        current_status = TaskStatus(task.status)
        status, progress = resolve_progress(
            current_status, task.progress, body.status, body.progress,
        )
        raise_validation(validate_progress(status, progress))
        if status != current_status:
            raise_business(check_dependencies_finished(
                status, await self._dependency_statuses(task.id),
            ))

        if status == TaskStatus.COMPLETED and current_status != TaskStatus.COMPLETED:
            task.completed_at = utc_now()
        elif status != TaskStatus.COMPLETED:
            task.completed_at = None
        task.status = status.value
        task.progress = progress
        self._log(
            task, user, "progress_updated",
            f"Status {current_status.value} -> {status.value}, progress {progress}%",
            {"from_status": current_status.value, "to_status": status.value, "progress": progress},
        )
        await self.db.commit()
        await self.db.refresh(task)
        return task

    # ─── Dependencies ─────────────────────────────────────────────

    async def add_dependency(
        self, task_id: UUID, depends_on_id: UUID, user: User,
    ) -> TaskDependency:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_permission(self.db, task.workspace_id, user, Permission.MANAGE_TASKS)
        dependency = await get_or_404(self.db, WorkspaceTask, depends_on_id, "Task")
        edges = await self._workspace_edges(task.workspace_id)
        error = validate_dependency(
            task.id, dependency.id, task.workspace_id, dependency.workspace_id, edges,
        )
        if error and error["error_code"] == "DUPLICATE_DEPENDENCY":
            raise_conflict(error)
        raise_business(error)

        link = TaskDependency(task_id=task.id, depends_on_id=dependency.id)
        self.db.add(link)
        self._log(
            task, user, "dependency_added", f"Now depends on: {dependency.title}",
            {"depends_on_id": str(dependency.id)},
        )
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def remove_dependency(
        self, task_id: UUID, depends_on_id: UUID, user: User,
    ) -> None:
        task = await get_or_404(self.db, WorkspaceTask, task_id, "Task")
        await require_permission(self.db, task.workspace_id, user, Permission.MANAGE_TASKS)
        result = await self.db.execute(
            select(TaskDependency).where(
                TaskDependency.task_id == task_id,
                TaskDependency.depends_on_id == depends_on_id,
            ),
        )
        link = result.scalar_one_or_none()
        if link is None:
            raise ResourceNotFoundError("TaskDependency", f"{task_id}->{depends_on_id}")
        await self.db.delete(link)
        self._log(
            task, user, "dependency_removed", "Dependency removed",
            {"depends_on_id": str(depends_on_id)},
        )
        await self.db.commit()

    async def list_dependencies(self, task_id: UUID, user: User) -> list[TaskDependency]:
        task = await self.get_task(task_id, user)
        result = await self.db.execute(
            select(TaskDependency)
            .where(TaskDependency.task_id == task.id)
            .order_by(TaskDependency.created_at),
        )
        return list(result.scalars().all())

    # ─── Comments & history ───────────────────────────────────────

    async def add_comment(
        self, task_id: UUID, body: CommentCreate, user: User,
    ) -> TaskComment:
        task = await self.get_task(task_id, user)
        comment = TaskComment(task_id=task.id, user_id=user.id, content=body.content)
        self.db.add(comment)
        self._log(task, user, "commented", "Comment added")
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def list_comments(self, task_id: UUID, user: User) -> list[TaskComment]:
        task = await self.get_task(task_id, user)
        result = await self.db.execute(
            select(TaskComment)
            .where(TaskComment.task_id == task.id)
            .order_by(TaskComment.created_at),
        )
        return list(result.scalars().all())

    async def list_history(self, task_id: UUID, user: User) -> list[TaskActivity]:
        task = await self.get_task(task_id, user)
        result = await self.db.execute(
            select(TaskActivity)
            .where(TaskActivity.task_id == task.id)
            .order_by(TaskActivity.created_at.desc()),
        )
        return list(result.scalars().all())

    # ─── Internals ────────────────────────────────────────────────

    def _log(
        self,
        task: WorkspaceTask,
        user: User,
        activity_type: str,
        description: str,
        metadata: dict | None = None,
    ) -> None:
        self.db.add(TaskActivity(
            task_id=task.id,
            workspace_id=task.workspace_id,
            user_id=user.id,
            activity_type=activity_type,
            description=description,
            metadata_=metadata or {},
        ))

    def _notify_assignee(self, task: WorkspaceTask, assigner: User) -> None:
        if task.assigned_to == assigner.id:
            return
        fan_out(self.db, [{
            "user_id": task.assigned_to,
            "type": NotificationType.TASK_ASSIGNED.value,
            "title": "New task assigned",
            "message": f"{assigner.full_name} assigned you: {task.title}",
            "link": f"/workspace/{task.workspace_id}?task={task.id}",
            "metadata": {"task_id": str(task.id), "assigned_by": str(assigner.id)},
        }])

    async def _require_active_assignee(self, workspace_id: UUID, user_id: UUID) -> None:
        member = await get_membership(self.db, workspace_id, user_id)
        if member is None or member.status != MemberStatus.ACTIVE.value:
            raise BusinessRuleError(
                "Tasks can only be assigned to active workspace members",
                "ASSIGNEE_NOT_MEMBER",
                ErrorContext(workspace_id=str(workspace_id), user_id=str(user_id)),
            )

    async def _dependency_statuses(self, task_id: UUID) -> list[TaskStatus]:
        result = await self.db.execute(
            select(WorkspaceTask.status)
            .join(TaskDependency, TaskDependency.depends_on_id == WorkspaceTask.id)
            .where(TaskDependency.task_id == task_id),
        )
        return [TaskStatus(s) for s in result.scalars().all()]

    async def _workspace_edges(self, workspace_id: UUID) -> dict[UUID, set[UUID]]:
        result = await self.db.execute(
            select(TaskDependency.task_id, TaskDependency.depends_on_id)
            .join(WorkspaceTask, WorkspaceTask.id == TaskDependency.task_id)
            .where(WorkspaceTask.workspace_id == workspace_id),
        )
        edges: dict[UUID, set[UUID]] = {}
        for task_id, depends_on_id in result.all():
            edges.setdefault(task_id, set()).add(depends_on_id)
        return edges
