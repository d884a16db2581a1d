"""Certificate Routes — issuance, public verification, and AI design generation.

Invariants:
    - GET /api/v1/certificates/verify/{certificate_id} is public
    - Design generation is rate limited per user (429 with Retry-After)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_anthropic_client, get_current_user
from eventdesk.infrastructure.anthropic_client import ResilientAnthropicClient
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.certificate import (
    CertificateIssue, CertificateResponse, CertificateVerification, DesignRequest,
    DesignResponse,
)
from eventdesk.services.certificate_design import CertificateDesignService
from eventdesk.services.certificates import CertificateService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["certificates"])


@router.post(
    "/events/{event_id}/certificates", response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def issue_certificate(
    event_id: UUID,
    body: CertificateIssue,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CertificateService(db).issue(event_id, body, user)


@router.get("/events/{event_id}/certificates", response_model=list[CertificateResponse])
async def list_event_certificates(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CertificateService(db).list_for_event(event_id, user)


@router.get("/certificates/mine", response_model=list[CertificateResponse])
async def list_my_certificates(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await CertificateService(db).list_mine(user)


@router.post("/certificates/{certificate_pk}/distribute", response_model=CertificateResponse)
async def mark_distributed(
    certificate_pk: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CertificateService(db).mark_distributed(certificate_pk, user)


@router.get(
    "/certificates/verify/{certificate_id}", response_model=CertificateVerification,
)
async def verify_certificate(certificate_id: str, db: AsyncSession = Depends(get_db)):
    return await CertificateService(db).verify(certificate_id)


@router.post("/certificates/design", response_model=DesignResponse)
async def generate_certificate_design(
    body: DesignRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
):
    return await CertificateDesignService(db, client).generate(body, user)
