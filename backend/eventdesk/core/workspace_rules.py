"""Workspace Rules — hierarchy, role permissions, and lifecycle transitions.

Invariants:
    - ROOT -> DEPARTMENT -> COMMITTEE -> TEAM; TEAM has no children
    - DEFAULT_PERMISSIONS is the single source of truth for role grants
    - An explicit permission list on a membership overrides the role default
    - DISSOLVED is terminal
    - All functions are pure; "now" is passed in
"""

import math
from datetime import datetime, timedelta

from eventdesk.core.clock import ensure_utc
from eventdesk.core.domain_types import (
    ChannelType, EventStatus, Permission, WorkspaceRole, WorkspaceStatus,
    WorkspaceType,
)


DEFAULT_RETENTION_DAYS = 30

DEFAULT_PERMISSIONS: dict[WorkspaceRole, frozenset[Permission]] = {
    WorkspaceRole.WORKSPACE_OWNER: frozenset({
        Permission.MANAGE_WORKSPACE,
        Permission.MANAGE_TEAM,
        Permission.MANAGE_TASKS,
        Permission.MANAGE_CHANNELS,
        Permission.VIEW_ANALYTICS,
        Permission.MANAGE_PERMISSIONS,
    }),
    WorkspaceRole.TEAM_LEAD: frozenset({
        Permission.MANAGE_TASKS,
        Permission.MANAGE_CHANNELS,
        Permission.VIEW_ANALYTICS,
        Permission.INVITE_MEMBERS,
    }),
    WorkspaceRole.EVENT_COORDINATOR: frozenset({
        Permission.MANAGE_TASKS,
        Permission.VIEW_ANALYTICS,
        Permission.CREATE_TASKS,
    }),
    WorkspaceRole.VOLUNTEER_MANAGER: frozenset({
        Permission.MANAGE_TASKS,
        Permission.CREATE_TASKS,
        Permission.INVITE_MEMBERS,
    }),
    WorkspaceRole.TECHNICAL_SPECIALIST: frozenset({
        Permission.CREATE_TASKS,
        Permission.MANAGE_TASKS,
    }),
    WorkspaceRole.MARKETING_LEAD: frozenset({
        Permission.CREATE_TASKS,
        Permission.MANAGE_TASKS,
        Permission.MANAGE_CHANNELS,
    }),
    WorkspaceRole.GENERAL_VOLUNTEER: frozenset({
        Permission.VIEW_TASKS,
        Permission.UPDATE_TASK_PROGRESS,
    }),
}

CHILD_WORKSPACE_TYPE: dict[WorkspaceType, WorkspaceType | None] = {
    WorkspaceType.ROOT: WorkspaceType.DEPARTMENT,
    WorkspaceType.DEPARTMENT: WorkspaceType.COMMITTEE,
    WorkspaceType.COMMITTEE: WorkspaceType.TEAM,
    WorkspaceType.TEAM: None,
}

WORKSPACE_STATUS_TRANSITIONS: dict[WorkspaceStatus, list[WorkspaceStatus]] = {
    WorkspaceStatus.PROVISIONING: [WorkspaceStatus.ACTIVE],
    WorkspaceStatus.ACTIVE: [WorkspaceStatus.WINDING_DOWN, WorkspaceStatus.DISSOLVED],
    WorkspaceStatus.WINDING_DOWN: [WorkspaceStatus.DISSOLVED, WorkspaceStatus.ACTIVE],
    WorkspaceStatus.DISSOLVED: [],
}

DEFAULT_CHANNELS: list[dict] = [
    {
        "name": "general",
        "type": ChannelType.GENERAL,
        "description": "General team discussions",
    },
    {
        "name": "announcements",
        "type": ChannelType.ANNOUNCEMENT,
        "description": "Important announcements and updates",
    },
    {
        "name": "tasks",
        "type": ChannelType.TASK_SPECIFIC,
        "description": "Task-related discussions",
    },
]


def default_settings(retention_days: int = DEFAULT_RETENTION_DAYS) -> dict:
    return {
        "auto_invite_organizer": True,
        "default_channels": [c["name"] for c in DEFAULT_CHANNELS],
        "task_categories": [
            "SETUP", "MARKETING", "LOGISTICS",
            "TECHNICAL", "REGISTRATION", "POST_EVENT",
        ],
        "retention_period_days": retention_days,
        "allow_external_members": False,
    }


# ─── Permissions ─────────────────────────────────────────────────

def effective_permissions(
    role: WorkspaceRole, explicit: list[str] | None,
) -> frozenset[str]:
    """Explicit list wins when present (even if empty-but-set is not None)."""
    if explicit is not None:
        return frozenset(explicit)
    return frozenset(p.value for p in DEFAULT_PERMISSIONS.get(role, frozenset()))


def has_any_permission(
    role: WorkspaceRole,
    explicit: list[str] | None,
    *required: Permission,
) -> bool:
    granted = effective_permissions(role, explicit)
    return any(p.value in granted for p in required)


# ─── Hierarchy ───────────────────────────────────────────────────

def validate_child_type(
    parent_type: WorkspaceType, child_type: WorkspaceType,
) -> dict | None:
    allowed = CHILD_WORKSPACE_TYPE[parent_type]
    if allowed is None:
        return {
            "error_code": "HIERARCHY_DEPTH_EXCEEDED",
            "message": f"{parent_type.value} workspaces cannot have children",
        }
    if child_type != allowed:
        return {
            "error_code": "INVALID_CHILD_TYPE",
            "message": (
                f"A {parent_type.value} workspace can only contain "
                f"{allowed.value} workspaces, not {child_type.value}"
            ),
        }
    return None


# ─── Lifecycle ───────────────────────────────────────────────────

def check_workspace_transition(
    current: WorkspaceStatus, target: WorkspaceStatus,
) -> dict | None:
    if target not in WORKSPACE_STATUS_TRANSITIONS[current]:
        return {
            "error_code": "INVALID_WORKSPACE_TRANSITION",
            "message": (
                f"Cannot move workspace from {current.value} to {target.value}"
            ),
        }
    return None


def event_has_concluded(
    event_status: EventStatus, event_end: datetime, now: datetime,
) -> bool:
    """Dissolution is allowed once the event ended, completed, or was cancelled."""
    if event_status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
        return True
    return ensure_utc(event_end) < now


def retention_days(settings: dict | None) -> int:
    value = (settings or {}).get("retention_period_days")
    if value is None:
        return DEFAULT_RETENTION_DAYS
    return int(value)


def scheduled_dissolution(event_end: datetime, retention: int) -> datetime:
    return ensure_utc(event_end) + timedelta(days=retention)


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days remaining, rounded up, never negative."""
    seconds = (ensure_utc(moment) - now).total_seconds()
    return max(0, math.ceil(seconds / 86_400))


def reassignment_note(description: str | None, manager_id: str) -> str:
    note = (
        "[REASSIGNED: Originally assigned to departing team member, "
        f"reassigned to {manager_id}]"
    )
    return f"{description}\n\n{note}" if description else note


def chunk_for_committees(items: list, committee_count: int) -> list[list]:
    """Split items into contiguous chunks of ceil(n / committees).

    Later committees may receive fewer (or zero) items.
    """
    if committee_count <= 0 or not items:
        return [[] for _ in range(max(committee_count, 0))]
    size = math.ceil(len(items) / committee_count)
    return [items[i * size:(i + 1) * size] for i in range(committee_count)]
