"""Workspace Schemas — provisioning, hierarchy, team membership, lifecycle, reports.

Invariants:
    - Template ids limited to the WORKSPACE_TEMPLATES keys
    - retention days are >= 0 (0 dissolves immediately)
    - explicit permissions, when given, are Permission values
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventdesk.core.domain_types import (
    MemberStatus, Permission, WorkspaceRole, WorkspaceStatus, WorkspaceType,
)


class WorkspaceProvision(BaseModel):
    event_id: UUID
    name: str | None = Field(None, min_length=1, max_length=200)
    template: Literal["conference", "hackathon", "blank"] | None = None
    retention_period_days: int | None = Field(None, ge=0, le=3650)


class ChildWorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    workspace_type: WorkspaceType
    description: str | None = Field(None, max_length=5000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class WorkspaceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    settings: dict | None = None


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    parent_workspace_id: UUID | None
    name: str
    description: str | None
    workspace_type: WorkspaceType
    status: WorkspaceStatus
    settings: dict
    dissolved_at: datetime | None
    created_at: datetime


class TaskSummary(BaseModel):
    total: int
    completed: int
    in_progress: int
    overdue: int


class WorkspaceDetail(WorkspaceResponse):
    task_summary: TaskSummary
    my_role: WorkspaceRole
    my_permissions: list[str]


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    title: str
    description: str | None
    status: str
    due_date: datetime | None
    sort_order: int


class ProvisionResponse(BaseModel):
    workspace: WorkspaceResponse
    departments_created: int
    committees_created: int
    tasks_created: int
    milestones_created: int


class MemberInvite(BaseModel):
    user_id: UUID
    role: WorkspaceRole = WorkspaceRole.GENERAL_VOLUNTEER
    permissions: list[Permission] | None = None


class MemberUpdate(BaseModel):
    role: WorkspaceRole
    permissions: list[Permission] | None = None


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    user_id: UUID
    role: WorkspaceRole
    status: MemberStatus
    permissions: list[str] | None
    joined_at: datetime
    left_at: datetime | None


# ─── Lifecycle ───────────────────────────────────────────────────

class DissolveRequest(BaseModel):
    retention_days: int | None = Field(None, ge=0, le=3650)


class EmergencyRevokeRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class EarlyDepartureRequest(BaseModel):
    user_id: UUID
    manager_id: UUID


class LifecycleStatus(BaseModel):
    workspace_id: UUID
    status: WorkspaceStatus
    allowed_transitions: list[WorkspaceStatus]
    retention_period_days: int
    event_end_date: datetime
    scheduled_dissolution_at: datetime
    days_until_dissolution: int
    dissolved_at: datetime | None


class DissolutionRunResult(BaseModel):
    processed: int
    dissolved: list[UUID]
    failed: list[UUID]


# ─── Reports ─────────────────────────────────────────────────────

class ReportRequest(BaseModel):
    report_type: Literal["tasks", "team", "activity", "comprehensive"]
    format: Literal["json", "csv"] = "json"
    include_children: bool = False
    date_from: datetime | None = None
    date_to: datetime | None = None
