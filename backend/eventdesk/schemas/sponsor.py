"""Sponsor Schemas — pipeline CRUD and summary."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from eventdesk.core.domain_types import SponsorStatus, SponsorTier


class SponsorCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    contact_name: str | None = Field(None, max_length=200)
    contact_email: str | None = Field(None, max_length=320)
    tier: SponsorTier
    committed_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    received_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: str | None = Field(None, max_length=5000)


class SponsorUpdate(BaseModel):
    company_name: str | None = Field(None, min_length=1, max_length=200)
    contact_name: str | None = Field(None, max_length=200)
    contact_email: str | None = Field(None, max_length=320)
    tier: SponsorTier | None = None
    status: SponsorStatus | None = None
    committed_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    received_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = Field(None, max_length=5000)


class SponsorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    company_name: str
    contact_name: str | None
    contact_email: str | None
    tier: SponsorTier
    status: SponsorStatus
    committed_amount: Decimal
    received_amount: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime


class PipelineBucket(BaseModel):
    count: int
    committed: Decimal
    received: Decimal


class SponsorSummary(BaseModel):
    total_sponsors: int
    total_committed: Decimal
    total_received: Decimal
    by_status: dict[str, PipelineBucket]
    by_tier: dict[str, PipelineBucket]
