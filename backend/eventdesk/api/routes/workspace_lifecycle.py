"""Workspace Lifecycle Routes — wind-down, reactivation, dissolution, departures.

Invariants:
    - Every transition is permission-checked in WorkspaceLifecycleService
    - The dissolution run is platform-admin only; it is meant for a scheduler
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.workspace import (
    DissolutionRunResult, DissolveRequest, EarlyDepartureRequest,
    EmergencyRevokeRequest, LifecycleStatus, WorkspaceResponse,
)
from eventdesk.services.workspace_lifecycle import WorkspaceLifecycleService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/workspaces", tags=["workspace-lifecycle"])


@router.post("/lifecycle/process-dissolutions", response_model=DissolutionRunResult)
async def process_dissolutions(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).process_automatic_dissolution(user)


@router.get("/{workspace_id}/lifecycle", response_model=LifecycleStatus)
async def get_lifecycle_status(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).lifecycle_status(workspace_id, user)


@router.post("/{workspace_id}/wind-down", response_model=WorkspaceResponse)
async def wind_down_workspace(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).initiate_wind_down(workspace_id, user)


@router.post("/{workspace_id}/reactivate", response_model=WorkspaceResponse)
async def reactivate_workspace(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).reactivate(workspace_id, user)


@router.post("/{workspace_id}/dissolve", response_model=WorkspaceResponse)
async def dissolve_workspace(
    workspace_id: UUID,
    body: DissolveRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).dissolve(
        workspace_id, user, body.retention_days,
    )


@router.post("/{workspace_id}/emergency-revoke", response_model=WorkspaceResponse)
async def emergency_revoke(
    workspace_id: UUID,
    body: EmergencyRevokeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkspaceLifecycleService(db).emergency_revoke(
        workspace_id, user, body.reason,
    )


@router.post("/{workspace_id}/early-departure")
async def early_departure(
    workspace_id: UUID,
    body: EarlyDepartureRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a member and reassign their unfinished tasks."""
    reassigned = await WorkspaceLifecycleService(db).early_departure(
        workspace_id, body.user_id, body.manager_id, user,
    )
    return {"reassigned_tasks": reassigned}
