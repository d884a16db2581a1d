"""Workspace Routes — provisioning, hierarchy, settings, members, milestones, reports.

Invariants:
    - Provisioning creates the single ROOT workspace for an event
    - Reports in csv format are returned as text/csv attachments
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.workspace import (
    ChildWorkspaceCreate, MemberInvite, MemberResponse, MemberUpdate,
    MilestoneResponse, ProvisionResponse, ReportRequest, WorkspaceDetail,
    WorkspaceProvision, WorkspaceResponse, WorkspaceUpdate,
)
from eventdesk.services.workspace_provisioning import WorkspaceProvisioningService
from eventdesk.services.workspace_reports import WorkspaceReportService
from eventdesk.services.workspaces import WorkspaceService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


@router.post("", response_model=ProvisionResponse, status_code=status.HTTP_201_CREATED)
async def provision_workspace(
    body: WorkspaceProvision,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the event's ROOT workspace, optionally from a template."""
    return await WorkspaceProvisioningService(db).provision(body, user)


@router.get("/mine", response_model=list[WorkspaceResponse])
async def list_my_workspaces(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).list_my_workspaces(user)


@router.get("/{workspace_id}", response_model=WorkspaceDetail)
async def get_workspace(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    detail = await WorkspaceService(db).get_workspace(workspace_id, user)
    base = WorkspaceResponse.model_validate(detail.pop("workspace"))
    return WorkspaceDetail(**base.model_dump(), **detail)


@router.patch("/{workspace_id}", response_model=WorkspaceResponse)
async def update_workspace(
    workspace_id: UUID,
    body: WorkspaceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).update_workspace(workspace_id, body, user)


# ─── Hierarchy ───────────────────────────────────────────────────

@router.post(
    "/{workspace_id}/children", response_model=WorkspaceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_child_workspace(
    workspace_id: UUID,
    body: ChildWorkspaceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).create_child(workspace_id, body, user)


@router.get("/{workspace_id}/children", response_model=list[WorkspaceResponse])
async def list_child_workspaces(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).list_children(workspace_id, user)


@router.get("/{workspace_id}/milestones", response_model=list[MilestoneResponse])
async def list_milestones(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).list_milestones(workspace_id, user)


# ─── Members ─────────────────────────────────────────────────────

@router.get("/{workspace_id}/members", response_model=list[MemberResponse])
async def list_members(
    workspace_id: UUID,
    include_inactive: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).list_members(workspace_id, user, include_inactive)


@router.post(
    "/{workspace_id}/members", response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_member(
    workspace_id: UUID,
    body: MemberInvite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).invite_member(workspace_id, body, user)


@router.patch("/{workspace_id}/members/{member_id}", response_model=MemberResponse)
async def update_member(
    workspace_id: UUID,
    member_id: UUID,
    body: MemberUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceService(db).update_member(workspace_id, member_id, body, user)


# ─── Reports ─────────────────────────────────────────────────────

@router.post("/{workspace_id}/reports")
async def generate_report(
    workspace_id: UUID,
    body: ReportRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    report = await WorkspaceReportService(db).generate(workspace_id, body, user)
    if body.format == "csv":
        return Response(
            content=report["csv"],
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="{report["filename"]}"',
            },
        )
    return {
        "report_type": report["report_type"],
        "generated_at": report["generated_at"],
        "workspace_ids": report["workspace_ids"],
        "data": report["data"],
    }
