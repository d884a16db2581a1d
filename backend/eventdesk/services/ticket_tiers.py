"""Ticket Tier Service — organizer tier/promo management and public tier listing.

Invariants:
    - Only the event organizer manages tiers and promo codes
    - A tier's quantity can never drop below what is already sold
    - Tiers with sales are deactivated, never deleted
    - Promo codes are unique per event (case-insensitive, stored upper case)
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import DiscountType
from eventdesk.core.errors import (
    BusinessRuleError, ConflictError, ErrorContext, ResourceNotFoundError,
)
from eventdesk.core.ticket_rules import (
    normalize_promo_code, quote_price, tickets_remaining, tier_sale_status,
    validate_promo_code,
)
from eventdesk.models.promo_code import PromoCode
from eventdesk.models.ticket_tier import TicketTier
from eventdesk.models.user import User
from eventdesk.schemas.ticketing import (
    PromoCreate, PromoValidateRequest, TierCreate, TierUpdate,
)
from eventdesk.services.guards import get_event_or_404, get_or_404, require_organizer

logger = logging.getLogger(__name__)


def tier_view(tier: TicketTier) -> dict:
    """Tier columns plus derived sale_status and remaining."""
    return {
        "id": tier.id,
        "event_id": tier.event_id,
        "name": tier.name,
        "description": tier.description,
        "price": tier.price,
        "currency": tier.currency,
        "quantity": tier.quantity,
        "sold_count": tier.sold_count,
        "sale_start": tier.sale_start,
        "sale_end": tier.sale_end,
        "is_active": tier.is_active,
        "sort_order": tier.sort_order,
        "sale_status": tier_sale_status(
            tier.is_active, tier.sale_start, tier.sale_end,
            tier.quantity, tier.sold_count, utc_now(),
        ),
        "remaining": tickets_remaining(tier.quantity, tier.sold_count),
    }


async def get_tier_for_event(db: AsyncSession, event_id: UUID, tier_id: UUID) -> TicketTier:
    tier = await db.get(TicketTier, tier_id)
    if tier is None or tier.event_id != event_id:
        raise ResourceNotFoundError("TicketTier", str(tier_id))
    return tier


async def find_promo(db: AsyncSession, event_id: UUID, code: str) -> PromoCode | None:
    result = await db.execute(
        select(PromoCode).where(
            PromoCode.event_id == event_id,
            PromoCode.code == normalize_promo_code(code),
        ),
    )
    return result.scalar_one_or_none()


class TicketTierService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Tiers ────────────────────────────────────────────────────

    async def create_tier(self, event_id: UUID, body: TierCreate, user: User) -> TicketTier:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        tier = TicketTier(event_id=event_id, **body.model_dump())
        self.db.add(tier)
        await self.db.commit()
        await self.db.refresh(tier)
        logger.info(f"Ticket tier created: {tier.name}", extra={"event_id": event_id})
        return tier

    async def update_tier(self, tier_id: UUID, body: TierUpdate, user: User) -> TicketTier:
        tier = await get_or_404(self.db, TicketTier, tier_id, "TicketTier")
        event = await get_event_or_404(self.db, tier.event_id)
        require_organizer(event, user)
        changes = body.model_dump(exclude_unset=True)
        if "quantity" in changes and changes["quantity"] is not None:
            if changes["quantity"] < tier.sold_count:
                raise BusinessRuleError(
                    f"Quantity cannot be lower than the {tier.sold_count} tickets already sold",
                    "QUANTITY_BELOW_SOLD",
                    ErrorContext(event_id=str(event.id)),
                )
        for key, value in changes.items():
            if key in ("name", "price", "is_active", "sort_order") and value is None:
                continue
            setattr(tier, key, value)
        await self.db.commit()
        await self.db.refresh(tier)
        return tier

    async def delete_tier(self, tier_id: UUID, user: User) -> TicketTier | None:
        """Delete an unsold tier; a tier with sales is deactivated and returned."""
        tier = await get_or_404(self.db, TicketTier, tier_id, "TicketTier")
        event = await get_event_or_404(self.db, tier.event_id)
        require_organizer(event, user)
        if tier.sold_count > 0:
            tier.is_active = False
            await self.db.commit()
            await self.db.refresh(tier)
            logger.info(
                f"Tier {tier.name} has sales, deactivated instead of deleted",
                extra={"event_id": event.id},
            )
            return tier
        await self.db.delete(tier)
        await self.db.commit()
        return None

    async def list_public_tiers(self, event_id: UUID) -> list[TicketTier]:
        await get_event_or_404(self.db, event_id)
        result = await self.db.execute(
            select(TicketTier)
            .where(TicketTier.event_id == event_id, TicketTier.is_active.is_(True))
            .order_by(TicketTier.sort_order, TicketTier.price),
        )
        return list(result.scalars().all())

    async def list_all_tiers(self, event_id: UUID, user: User) -> list[TicketTier]:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        result = await self.db.execute(
            select(TicketTier)
            .where(TicketTier.event_id == event_id)
            .order_by(TicketTier.sort_order, TicketTier.price),
        )
        return list(result.scalars().all())

    # ─── Promo codes ──────────────────────────────────────────────

    async def create_promo(self, event_id: UUID, body: PromoCreate, user: User) -> PromoCode:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        if body.ticket_tier_id is not None:
            await get_tier_for_event(self.db, event_id, body.ticket_tier_id)
        if await find_promo(self.db, event_id, body.code) is not None:
            raise ConflictError(
                f"Promo code {body.code} already exists for this event",
                "PROMO_CODE_EXISTS",
            )
        promo = PromoCode(
            event_id=event_id,
            code=body.code,
            discount_type=body.discount_type.value,
            discount_value=body.discount_value,
            max_uses=body.max_uses,
            max_quantity=body.max_quantity,
            ticket_tier_id=body.ticket_tier_id,
            valid_from=body.valid_from,
            valid_until=body.valid_until,
            is_active=body.is_active,
        )
        self.db.add(promo)
        await self.db.commit()
        await self.db.refresh(promo)
        return promo

    async def list_promos(self, event_id: UUID, user: User) -> list[PromoCode]:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        result = await self.db.execute(
            select(PromoCode)
            .where(PromoCode.event_id == event_id)
            .order_by(PromoCode.created_at.desc()),
        )
        return list(result.scalars().all())

    async def validate_promo(self, event_id: UUID, body: PromoValidateRequest) -> dict:
        """Discount preview. Invalid codes return valid=False instead of raising."""
        tier = await get_tier_for_event(self.db, event_id, body.tier_id)
        promo = await find_promo(self.db, event_id, body.code)
        base = quote_price(tier.price, body.quantity)
        if promo is None:
            return {
                "valid": False, "error_code": "PROMO_NOT_FOUND",
                "message": "Promo code not found",
                "subtotal": base.subtotal, "discount_amount": base.discount,
                "total": base.total,
            }
        error = validate_promo_code(
            is_active=promo.is_active,
            valid_from=promo.valid_from,
            valid_until=promo.valid_until,
            max_uses=promo.max_uses,
            used_count=promo.used_count,
            restricted_tier_id=promo.ticket_tier_id,
            tier_id=tier.id,
            now=utc_now(),
        )
        if error:
            return {
                "valid": False, "error_code": error["error_code"],
                "message": error["message"],
                "subtotal": base.subtotal, "discount_amount": base.discount,
                "total": base.total,
            }
        quote = quote_price(
            tier.price, body.quantity, DiscountType(promo.discount_type),
            promo.discount_value, promo.max_quantity,
        )
        return {
            "valid": True, "promo_code_id": promo.id,
            "subtotal": quote.subtotal, "discount_amount": quote.discount,
            "total": quote.total,
        }
