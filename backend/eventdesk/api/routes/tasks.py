"""Task Routes — workspace tasks, assignment, progress, dependencies, comments."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.core.domain_types import TaskCategory, TaskPriority, TaskStatus
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.task import (
    ActivityResponse, CommentCreate, CommentResponse, DependencyCreate,
    DependencyResponse, TaskAssign, TaskCreate, TaskProgressUpdate, TaskResponse,
    TaskUpdate,
)
from eventdesk.services.tasks import TaskService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.post(
    "/workspaces/{workspace_id}/tasks", response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    workspace_id: UUID,
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).create_task(workspace_id, body, user)


@router.get("/workspaces/{workspace_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    workspace_id: UUID,
    task_status: TaskStatus | None = Query(None, alias="status"),
    assigned_to: UUID | None = Query(None),
    category: TaskCategory | None = Query(None),
    priority: TaskPriority | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).list_tasks(
        workspace_id, user, task_status, assigned_to, category, priority,
    )


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).get_task(task_id, user)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).update_task(task_id, body, user)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TaskService(db).delete_task(task_id, user)


@router.post("/tasks/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: UUID,
    body: TaskAssign,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).assign_task(task_id, body.assigned_to, user)


@router.post("/tasks/{task_id}/progress", response_model=TaskResponse)
async def update_task_progress(
    task_id: UUID,
    body: TaskProgressUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).update_progress(task_id, body, user)


# ─── Dependencies ────────────────────────────────────────────────

@router.get("/tasks/{task_id}/dependencies", response_model=list[DependencyResponse])
async def list_dependencies(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).list_dependencies(task_id, user)


@router.post(
    "/tasks/{task_id}/dependencies", response_model=DependencyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_dependency(
    task_id: UUID,
    body: DependencyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).add_dependency(task_id, body.depends_on_id, user)


@router.delete(
    "/tasks/{task_id}/dependencies/{depends_on_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_dependency(
    task_id: UUID,
    depends_on_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TaskService(db).remove_dependency(task_id, depends_on_id, user)


# ─── Comments & history ──────────────────────────────────────────

@router.get("/tasks/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).list_comments(task_id, user)


@router.post(
    "/tasks/{task_id}/comments", response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    task_id: UUID,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).add_comment(task_id, body, user)


@router.get("/tasks/{task_id}/history", response_model=list[ActivityResponse])
async def list_task_history(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService(db).list_history(task_id, user)
