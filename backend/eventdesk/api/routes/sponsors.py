"""Sponsor Routes — a workspace's sponsorship pipeline and its summary."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.core.domain_types import SponsorStatus
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.sponsor import (
    SponsorCreate, SponsorResponse, SponsorSummary, SponsorUpdate,
)
from eventdesk.services.sponsors import SponsorService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/workspaces/{workspace_id}/sponsors", tags=["sponsors"])


@router.post("", response_model=SponsorResponse, status_code=status.HTTP_201_CREATED)
async def create_sponsor(
    workspace_id: UUID,
    body: SponsorCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SponsorService(db).create_sponsor(workspace_id, body, user)


@router.get("", response_model=list[SponsorResponse])
async def list_sponsors(
    workspace_id: UUID,
    sponsor_status: SponsorStatus | None = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SponsorService(db).list_sponsors(workspace_id, user, sponsor_status)


@router.get("/summary", response_model=SponsorSummary)
async def sponsor_summary(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SponsorService(db).summary(workspace_id, user)


@router.patch("/{sponsor_id}", response_model=SponsorResponse)
async def update_sponsor(
    workspace_id: UUID,
    sponsor_id: UUID,
    body: SponsorUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SponsorService(db).update_sponsor(workspace_id, sponsor_id, body, user)


@router.delete("/{sponsor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sponsor(
    workspace_id: UUID,
    sponsor_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await SponsorService(db).delete_sponsor(workspace_id, sponsor_id, user)
