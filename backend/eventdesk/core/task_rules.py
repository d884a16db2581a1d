"""Task Rules — progress/status coherence, dependency graph checks, summaries.

Invariants:
    - progress is within [0, 100]
    - COMPLETED implies progress == 100; progress == 100 implies COMPLETED
    - A dependency edge never closes a cycle and never points at its own task
    - A task cannot start or complete while any dependency is unfinished

Design Decisions:
    - Dependency graph passed in as adjacency dict: cycle check stays pure,
      the service loads the workspace's edges once
"""

from collections import deque
from datetime import datetime
from uuid import UUID

from eventdesk.core.clock import ensure_utc
from eventdesk.core.domain_types import Permission, TaskStatus, WorkspaceRole
from eventdesk.core.workspace_rules import effective_permissions


STATUSES_GATED_BY_DEPENDENCIES = frozenset({
    TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED,
})
REOPENED_PROGRESS = 99


def validate_progress(status: TaskStatus, progress: int) -> dict | None:
    if progress < 0 or progress > 100:
        return {
            "error_code": "INVALID_PROGRESS",
            "field": "progress",
            "message": "Progress must be between 0 and 100",
        }
    if progress == 100 and status != TaskStatus.COMPLETED:
        return {
            "error_code": "PROGRESS_STATUS_MISMATCH",
            "field": "progress",
            "message": "A task at 100% progress must be marked COMPLETED",
        }
    return None


def resolve_progress(
    current_status: TaskStatus,
    current_progress: int,
    new_status: TaskStatus | None,
    new_progress: int | None,
) -> tuple[TaskStatus, int]:
    """Merge a partial update. COMPLETED forces progress to 100.

    Reopening a completed task without a progress value drops it to
    REOPENED_PROGRESS (0 when sent back to NOT_STARTED); an explicit value wins.
    """
    status = new_status or current_status
    progress = current_progress if new_progress is None else new_progress
    if status == TaskStatus.COMPLETED:
        return status, 100
    if current_status == TaskStatus.COMPLETED and new_progress is None:
        return status, 0 if status == TaskStatus.NOT_STARTED else REOPENED_PROGRESS
    return status, progress


def check_dependencies_finished(
    target_status: TaskStatus, dependency_statuses: list[TaskStatus],
) -> dict | None:
    if target_status not in STATUSES_GATED_BY_DEPENDENCIES:
        return None
    unfinished = [s for s in dependency_statuses if s != TaskStatus.COMPLETED]
    if unfinished:
        return {
            "error_code": "DEPENDENCIES_INCOMPLETE",
            "message": (
                f"{len(unfinished)} dependenc"
                f"{'y is' if len(unfinished) == 1 else 'ies are'} not completed"
            ),
        }
    return None


def creates_cycle(
    edges: dict[UUID, set[UUID]], task_id: UUID, depends_on_id: UUID,
) -> bool:
    """True if task_id is reachable from depends_on_id along existing edges.

    edges maps a task to the set of tasks it depends on.
    """
    seen: set[UUID] = set()
    queue = deque([depends_on_id])
    while queue:
        current = queue.popleft()
        if current == task_id:
            return True
        if current in seen:
            continue
        seen.add(current)
        queue.extend(edges.get(current, ()))
    return False


def validate_dependency(
    task_id: UUID,
    depends_on_id: UUID,
    task_workspace_id: UUID,
    dependency_workspace_id: UUID,
    edges: dict[UUID, set[UUID]],
) -> dict | None:
    if task_id == depends_on_id:
        return {
            "error_code": "SELF_DEPENDENCY",
            "message": "A task cannot depend on itself",
        }
    if task_workspace_id != dependency_workspace_id:
        return {
            "error_code": "CROSS_WORKSPACE_DEPENDENCY",
            "message": "Dependencies must belong to the same workspace",
        }
    if depends_on_id in edges.get(task_id, set()):
        return {
            "error_code": "DUPLICATE_DEPENDENCY",
            "message": "Dependency already exists",
        }
    if creates_cycle(edges, task_id, depends_on_id):
        return {
            "error_code": "DEPENDENCY_CYCLE",
            "message": "Adding this dependency would create a cycle",
        }
    return None


def can_update_progress(
    role: WorkspaceRole,
    explicit_permissions: list[str] | None,
    assigned_to: UUID | None,
    user_id: UUID,
) -> bool:
    """MANAGE_TASKS covers every task; UPDATE_TASK_PROGRESS only the caller's own."""
    granted = effective_permissions(role, explicit_permissions)
    if Permission.MANAGE_TASKS.value in granted:
        return True
    return (
        Permission.UPDATE_TASK_PROGRESS.value in granted
        and assigned_to is not None
        and assigned_to == user_id
    )


def is_overdue(status: TaskStatus, due_date: datetime | None, now: datetime) -> bool:
    if due_date is None or status == TaskStatus.COMPLETED:
        return False
    return ensure_utc(due_date) < now


def summarize_tasks(
    tasks: list[tuple[TaskStatus, datetime | None]], now: datetime,
) -> dict:
    return {
        "total": len(tasks),
        "completed": sum(1 for s, _ in tasks if s == TaskStatus.COMPLETED),
        "in_progress": sum(1 for s, _ in tasks if s == TaskStatus.IN_PROGRESS),
        "overdue": sum(1 for s, due in tasks if is_overdue(s, due, now)),
    }
