"""Sponsor Service — a workspace's sponsorship pipeline.

Invariants:
    - Writes need MANAGE_WORKSPACE; any ACTIVE member may read
    - Status changes follow SPONSOR_TRANSITIONS; amounts validated after merge
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.domain_types import Permission, SponsorStatus, SponsorTier
from eventdesk.core.errors import ResourceNotFoundError
from eventdesk.core.sponsor_rules import (
    check_sponsor_transition, summarize_pipeline, validate_amounts,
)
from eventdesk.models.sponsor import Sponsor
from eventdesk.models.user import User
from eventdesk.schemas.sponsor import SponsorCreate, SponsorUpdate
from eventdesk.services.guards import (
    get_or_404, get_workspace_or_404, raise_conflict, raise_validation,
    require_member, require_permission,
)
from eventdesk.services.workspaces import ensure_not_dissolved

logger = logging.getLogger(__name__)


class SponsorService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_sponsor(
        self, workspace_id: UUID, body: SponsorCreate, user: User,
    ) -> Sponsor:
        workspace = await get_workspace_or_404(self.db, workspace_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        ensure_not_dissolved(workspace)
        raise_validation(validate_amounts(body.committed_amount, body.received_amount))

        sponsor = Sponsor(
            workspace_id=workspace_id,
            company_name=body.company_name,
            contact_name=body.contact_name,
            contact_email=body.contact_email,
            tier=body.tier.value,
            committed_amount=body.committed_amount,
            received_amount=body.received_amount,
            notes=body.notes,
        )
        self.db.add(sponsor)
        await self.db.commit()
        await self.db.refresh(sponsor)
        logger.info(
            f"Sponsor {sponsor.company_name} added", extra={"workspace_id": workspace_id},
        )
        return sponsor

    async def list_sponsors(
        self, workspace_id: UUID, user: User, status: SponsorStatus | None = None,
    ) -> list[Sponsor]:
        await require_member(self.db, workspace_id, user)
        query = select(Sponsor).where(Sponsor.workspace_id == workspace_id)
        if status is not None:
            query = query.where(Sponsor.status == status.value)
        result = await self.db.execute(query.order_by(Sponsor.created_at))
        return list(result.scalars().all())

    async def update_sponsor(
        self, workspace_id: UUID, sponsor_id: UUID, body: SponsorUpdate, user: User,
    ) -> Sponsor:
        sponsor = await self._get_sponsor(workspace_id, sponsor_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        changes = body.model_dump(exclude_unset=True)

        if "status" in changes and changes["status"] is not None:
            raise_conflict(check_sponsor_transition(
                SponsorStatus(sponsor.status), changes["status"],
            ))
        committed = changes.get("committed_amount")
        if committed is None:
            committed = sponsor.committed_amount
        received = changes.get("received_amount")
        if received is None:
            received = sponsor.received_amount
        raise_validation(validate_amounts(committed, received))

        for key, value in changes.items():
            if value is None and key in ("company_name", "tier", "status"):
                continue
            if isinstance(value, (SponsorStatus, SponsorTier)):
                value = value.value
            setattr(sponsor, key, value)
        await self.db.commit()
        await self.db.refresh(sponsor)
        return sponsor

    async def delete_sponsor(self, workspace_id: UUID, sponsor_id: UUID, user: User) -> None:
        sponsor = await self._get_sponsor(workspace_id, sponsor_id)
        await require_permission(self.db, workspace_id, user, Permission.MANAGE_WORKSPACE)
        await self.db.delete(sponsor)
        await self.db.commit()

    async def summary(self, workspace_id: UUID, user: User) -> dict:
        sponsors = await self.list_sponsors(workspace_id, user)
        return summarize_pipeline([
            (SponsorStatus(s.status), SponsorTier(s.tier), s.committed_amount, s.received_amount)
            for s in sponsors
        ])

    async def _get_sponsor(self, workspace_id: UUID, sponsor_id: UUID) -> Sponsor:
        sponsor = await get_or_404(self.db, Sponsor, sponsor_id, "Sponsor")
        if sponsor.workspace_id != workspace_id:
            raise ResourceNotFoundError("Sponsor", str(sponsor_id))
        return sponsor
