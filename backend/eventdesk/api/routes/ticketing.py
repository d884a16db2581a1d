"""Ticketing Routes — tiers, promo codes, purchases, registrations, check-in.

Invariants:
    - Tier responses always carry the derived sale_status and remaining
    - Public tier listing and promo preview need no identity
    - Deleting a tier with sales deactivates it (200 with the tier); a tier
      without sales is removed (204)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.api.dependencies import get_current_user
from eventdesk.core.domain_types import RegistrationStatus
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User
from eventdesk.schemas.ticketing import (
    AttendanceResponse, CheckInRequest, PromoCreate, PromoResponse,
    PromoValidateRequest, PromoValidateResponse, PurchaseRequest, PurchaseResponse,
    RegistrationResponse, TierCreate, TierResponse, TierUpdate,
)
from eventdesk.services.ticket_purchase import TicketPurchaseService
from eventdesk.services.ticket_tiers import TicketTierService, tier_view

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["ticketing"])


# ─── Tiers ───────────────────────────────────────────────────────

@router.post(
    "/events/{event_id}/tiers", response_model=TierResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_tier(
    event_id: UUID,
    body: TierCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return tier_view(await TicketTierService(db).create_tier(event_id, body, user))


@router.get("/events/{event_id}/tiers", response_model=list[TierResponse])
async def list_public_tiers(event_id: UUID, db: AsyncSession = Depends(get_db)):
    """Active tiers, as shown on the landing page."""
    tiers = await TicketTierService(db).list_public_tiers(event_id)
    return [tier_view(t) for t in tiers]


@router.get("/events/{event_id}/tiers/all", response_model=list[TierResponse])
async def list_all_tiers(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tiers = await TicketTierService(db).list_all_tiers(event_id, user)
    return [tier_view(t) for t in tiers]


@router.patch("/tiers/{tier_id}", response_model=TierResponse)
async def update_tier(
    tier_id: UUID,
    body: TierUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return tier_view(await TicketTierService(db).update_tier(tier_id, body, user))


@router.delete("/tiers/{tier_id}", response_model=TierResponse | None)
async def delete_tier(
    tier_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tier = await TicketTierService(db).delete_tier(tier_id, user)
    if tier is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return tier_view(tier)


# ─── Promo codes ─────────────────────────────────────────────────

@router.post(
    "/events/{event_id}/promo-codes", response_model=PromoResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_promo_code(
    event_id: UUID,
    body: PromoCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TicketTierService(db).create_promo(event_id, body, user)


@router.get("/events/{event_id}/promo-codes", response_model=list[PromoResponse])
async def list_promo_codes(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TicketTierService(db).list_promos(event_id, user)


@router.post(
    "/events/{event_id}/promo-codes/validate", response_model=PromoValidateResponse,
)
async def validate_promo_code(
    event_id: UUID,
    body: PromoValidateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await TicketTierService(db).validate_promo(event_id, body)


# ─── Purchases & registrations ───────────────────────────────────

@router.post(
    "/events/{event_id}/purchase", response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def purchase_tickets(
    event_id: UUID,
    body: PurchaseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    registration, position = await TicketPurchaseService(db).purchase(
        event_id, body, user,
    )
    return {"registration": registration, "waitlist_position": position}


@router.get("/registrations/mine", response_model=list[RegistrationResponse])
async def list_my_registrations(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await TicketPurchaseService(db).list_my_registrations(user)


@router.get(
    "/events/{event_id}/registrations", response_model=list[RegistrationResponse],
)
async def list_event_registrations(
    event_id: UUID,
    registration_status: RegistrationStatus | None = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TicketPurchaseService(db).list_event_registrations(
        event_id, user, registration_status,
    )


@router.post("/registrations/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TicketPurchaseService(db).cancel(registration_id, user)


@router.post(
    "/registrations/{registration_id}/check-in", response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def check_in(
    registration_id: UUID,
    body: CheckInRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TicketPurchaseService(db).check_in(registration_id, body.method, user)
