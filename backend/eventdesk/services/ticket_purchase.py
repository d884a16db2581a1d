"""Ticket Purchase — registration pipeline, cancellation, and check-in.

Invariants:
    - One non-cancelled registration per (user, event)
    - Cancelling a WAITLISTED registration also takes its owner off the waitlist
    - sold_count never exceeds quantity: the increment is a single conditional
      UPDATE; zero rows updated means the tier sold out (SoldOutError, 409)
    - If anything after the increment fails, sold_count is decremented back
      (never below 0) and the original exception propagates
    - Promo used_count is bumped with its own guarded UPDATE so concurrent
      purchases cannot overshoot max_uses
    - Free events (no active tiers) check capacity against confirmed tickets;
      a full event yields a WAITLISTED registration plus a waitlist entry

Design Decisions:
    - Two commits: the inventory reservation commits first so the guard sees
      other buyers' reservations; the registration commits second with an
      explicit compensating decrement on failure
"""

import logging
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import get_settings
from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    DiscountType, EventStatus, RegistrationStatus, TierSaleStatus, WaitlistStatus,
)
from eventdesk.core.errors import (
    BusinessRuleError, ConflictError, ErrorContext, PermissionDeniedError,
    SoldOutError,
)
from eventdesk.core.event_rules import is_registration_open
from eventdesk.core.ticket_rules import (
    quote_price, tier_sale_status, validate_promo_code, validate_purchase_request,
)
from eventdesk.core.waitlist_rules import compact_positions, next_position
from eventdesk.models.event import Event
from eventdesk.models.promo_code import PromoCode
from eventdesk.models.registration import Attendance, Registration
from eventdesk.models.ticket_tier import TicketTier
from eventdesk.models.user import User
from eventdesk.models.waitlist_entry import WaitlistEntry
from eventdesk.schemas.ticketing import PurchaseRequest
from eventdesk.services.guards import (
    get_event_or_404, get_or_404, raise_business, raise_validation, require_organizer,
)
from eventdesk.services.ticket_tiers import find_promo, get_tier_for_event

logger = logging.getLogger(__name__)


async def reserve_tickets(db: AsyncSession, tier: TicketTier, quantity: int) -> None:
    """Atomically add quantity to sold_count if inventory allows, then commit."""
    result = await db.execute(
        update(TicketTier)
        .where(
            TicketTier.id == tier.id,
            or_(
                TicketTier.quantity.is_(None),
                TicketTier.sold_count + quantity <= TicketTier.quantity,
            ),
        )
        .values(sold_count=TicketTier.sold_count + quantity)
        .execution_options(synchronize_session=False),
    )
    if result.rowcount == 0:
        raise SoldOutError(tier.name, ErrorContext(event_id=str(tier.event_id)))
    await db.commit()


async def release_tickets(db: AsyncSession, tier_id: UUID, quantity: int) -> None:
    """Subtract quantity from sold_count, floored at 0. Does not commit."""
    await db.execute(
        update(TicketTier)
        .where(TicketTier.id == tier_id)
        .values(sold_count=case(
            (TicketTier.sold_count >= quantity, TicketTier.sold_count - quantity),
            else_=0,
        ))
        .execution_options(synchronize_session=False),
    )


async def live_registration(
    db: AsyncSession, event_id: UUID, user_id: UUID,
) -> Registration | None:
    """The user's non-cancelled registration for the event, if any."""
    result = await db.execute(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
            Registration.status != RegistrationStatus.CANCELLED.value,
        ).limit(1),
    )
    return result.scalar_one_or_none()


def already_registered(event_id: UUID, user_id: UUID) -> ConflictError:
    return ConflictError(
        "You are already registered for this event", "ALREADY_REGISTERED",
        ErrorContext(event_id=str(event_id), user_id=str(user_id)),
    )


class TicketPurchaseService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def purchase(
        self, event_id: UUID, body: PurchaseRequest, user: User,
    ) -> tuple[Registration, int | None]:
        """Run the purchase pipeline. Returns (registration, waitlist_position)."""
        event = await get_event_or_404(self.db, event_id)
        if not is_registration_open(
            EventStatus(event.status), event.registration_deadline,
            event.end_date, utc_now(),
        ):
            raise BusinessRuleError(
                "Registration is closed for this event", "REGISTRATION_CLOSED",
                ErrorContext(event_id=str(event_id), user_id=str(user.id)),
            )
        await self._ensure_not_registered(event_id, user)

        attendees = [a.model_dump() for a in body.attendees]
        raise_validation(validate_purchase_request(
            body.quantity, attendees, get_settings().max_tickets_per_order,
        ))

        if not await self._has_active_tiers(event_id):
            return await self._register_free(event, body, attendees, user)
        if body.tier_id is None:
            raise BusinessRuleError(
                "A ticket tier must be selected", "TIER_REQUIRED",
                ErrorContext(event_id=str(event_id)),
            )
        registration = await self._register_paid(event, body, attendees, user)
        return registration, None

    async def _register_paid(
        self, event: Event, body: PurchaseRequest, attendees: list[dict], user: User,
    ) -> Registration:
        tier = await get_tier_for_event(self.db, event.id, body.tier_id)
        status = tier_sale_status(
            tier.is_active, tier.sale_start, tier.sale_end,
            tier.quantity, tier.sold_count, utc_now(),
        )
        if status == TierSaleStatus.SOLD_OUT:
            raise SoldOutError(tier.name, ErrorContext(event_id=str(event.id)))
        if status != TierSaleStatus.ON_SALE:
            raise BusinessRuleError(
                f"Tickets for {tier.name} are not on sale ({status.value})",
                "TIER_NOT_ON_SALE",
                ErrorContext(event_id=str(event.id)),
            )

        promo = None
        quote = quote_price(tier.price, body.quantity)
        if body.promo_code:
            promo = await find_promo(self.db, event.id, body.promo_code)
            if promo is None:
                raise BusinessRuleError("Promo code not found", "PROMO_NOT_FOUND")
            raise_business(validate_promo_code(
                is_active=promo.is_active,
                valid_from=promo.valid_from,
                valid_until=promo.valid_until,
                max_uses=promo.max_uses,
                used_count=promo.used_count,
                restricted_tier_id=promo.ticket_tier_id,
                tier_id=tier.id,
                now=utc_now(),
            ))
            quote = quote_price(
                tier.price, body.quantity, DiscountType(promo.discount_type),
                promo.discount_value, promo.max_quantity,
            )

        tier_id, tier_name, promo_id = tier.id, tier.name, promo.id if promo else None
        await reserve_tickets(self.db, tier, body.quantity)
        try:
            registration = Registration(
                event_id=event.id,
                user_id=user.id,
                ticket_tier_id=tier_id,
                promo_code_id=promo_id,
                status=RegistrationStatus.CONFIRMED.value,
                quantity=body.quantity,
                subtotal=quote.subtotal,
                discount_amount=quote.discount,
                total_amount=quote.total,
                attendees=attendees,
                form_responses=body.form_responses,
            )
            self.db.add(registration)
            if promo_id is not None:
                await self._consume_promo(promo_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await release_tickets(self.db, tier_id, body.quantity)
            await self.db.commit()
            logger.warning(
                f"Registration failed after reserving {body.quantity} x {tier_name}, "
                f"inventory released",
                extra={"event_id": event.id, "user_id": user.id},
            )
            raise

        await self.db.refresh(registration)
        logger.info(
            f"Registration confirmed: {body.quantity} x {tier_name}, total {quote.total}",
            extra={"event_id": event.id, "user_id": user.id},
        )
        return registration

    async def _register_free(
        self, event: Event, body: PurchaseRequest, attendees: list[dict], user: User,
    ) -> tuple[Registration, int | None]:
        confirmed = await self.db.execute(
            select(func.coalesce(func.sum(Registration.quantity), 0)).where(
                Registration.event_id == event.id,
                Registration.status == RegistrationStatus.CONFIRMED.value,
            ),
        )
        full = (
            event.capacity is not None
            and int(confirmed.scalar_one()) + body.quantity > event.capacity
        )
        registration = Registration(
            event_id=event.id,
            user_id=user.id,
            status=(
                RegistrationStatus.WAITLISTED if full else RegistrationStatus.CONFIRMED
            ).value,
            quantity=body.quantity,
            subtotal=0,
            discount_amount=0,
            total_amount=0,
            attendees=attendees,
            form_responses=body.form_responses,
        )
        self.db.add(registration)

        position = None
        if full:
            positions = await self.db.execute(
                select(WaitlistEntry.position).where(
                    WaitlistEntry.event_id == event.id,
                    WaitlistEntry.status == WaitlistStatus.WAITING.value,
                ),
            )
            position = next_position(list(positions.scalars().all()))
            lead = attendees[0] if attendees else {}
            self.db.add(WaitlistEntry(
                event_id=event.id,
                user_id=user.id,
                full_name=lead.get("name") or user.full_name,
                email=lead.get("email") or user.email,
                phone=lead.get("phone"),
                position=position,
                status=WaitlistStatus.WAITING.value,
            ))
        await self.db.commit()
        await self.db.refresh(registration)
        logger.info(
            f"Free registration {registration.status}"
            + (f" at waitlist position {position}" if position else ""),
            extra={"event_id": event.id, "user_id": user.id},
        )
        return registration, position

    async def _consume_promo(self, promo_id: UUID) -> None:
        result = await self.db.execute(
            update(PromoCode)
            .where(
                PromoCode.id == promo_id,
                or_(PromoCode.max_uses.is_(None), PromoCode.used_count < PromoCode.max_uses),
            )
            .values(used_count=PromoCode.used_count + 1)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            raise BusinessRuleError(
                "Promo code has reached its usage limit", "PROMO_EXHAUSTED",
            )

    async def _ensure_not_registered(self, event_id: UUID, user: User) -> None:
        if await live_registration(self.db, event_id, user.id) is not None:
            raise already_registered(event_id, user.id)

    async def _has_active_tiers(self, event_id: UUID) -> bool:
        result = await self.db.execute(
            select(TicketTier.id).where(
                TicketTier.event_id == event_id, TicketTier.is_active.is_(True),
            ).limit(1),
        )
        return result.first() is not None

    # ─── Cancellation & listing ───────────────────────────────────

    async def cancel(self, registration_id: UUID, user: User) -> Registration:
        registration = await get_or_404(self.db, Registration, registration_id, "Registration")
        event = await get_event_or_404(self.db, registration.event_id)
        if registration.user_id != user.id and event.organizer_id != user.id:
            raise PermissionDeniedError(
                "Only the registrant or the organizer can cancel a registration",
                ErrorContext(event_id=str(event.id), user_id=str(user.id)),
            )
        if registration.status == RegistrationStatus.CANCELLED.value:
            raise ConflictError("Registration is already cancelled", "ALREADY_CANCELLED")

        held_inventory = (
            registration.status == RegistrationStatus.CONFIRMED.value
            and registration.ticket_tier_id is not None
        )
        if registration.status == RegistrationStatus.WAITLISTED.value:
            await self._leave_waitlist(registration)
        registration.status = RegistrationStatus.CANCELLED.value
        if held_inventory:
            await release_tickets(self.db, registration.ticket_tier_id, registration.quantity)
        await self.db.commit()
        await self.db.refresh(registration)
        logger.info(
            "Registration cancelled", extra={"event_id": event.id, "user_id": user.id},
        )
        return registration

    async def _leave_waitlist(self, registration: Registration) -> None:
        """Drop the registrant's WAITING entries and close the gap they leave."""
        if registration.user_id is None:
            return
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(
                WaitlistEntry.event_id == registration.event_id,
                WaitlistEntry.status == WaitlistStatus.WAITING.value,
            )
            .order_by(WaitlistEntry.position, WaitlistEntry.created_at),
        )
        waiting = list(result.scalars().all())
        remaining = [e for e in waiting if e.user_id != registration.user_id]
        if len(remaining) == len(waiting):
            return
        for entry in waiting:
            if entry.user_id == registration.user_id:
                entry.status = WaitlistStatus.REMOVED.value
        positions = compact_positions([e.id for e in remaining])
        for entry in remaining:
            entry.position = positions[entry.id]

    async def list_my_registrations(self, user: User) -> list[Registration]:
        result = await self.db.execute(
            select(Registration)
            .where(Registration.user_id == user.id)
            .order_by(Registration.created_at.desc()),
        )
        return list(result.scalars().all())

    async def list_event_registrations(
        self, event_id: UUID, user: User, status: RegistrationStatus | None = None,
    ) -> list[Registration]:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        query = select(Registration).where(Registration.event_id == event_id)
        if status is not None:
            query = query.where(Registration.status == status.value)
        result = await self.db.execute(query.order_by(Registration.created_at))
        return list(result.scalars().all())

    # ─── Check-in ─────────────────────────────────────────────────

    async def check_in(self, registration_id: UUID, method: str, user: User) -> Attendance:
        registration = await get_or_404(self.db, Registration, registration_id, "Registration")
        event = await get_event_or_404(self.db, registration.event_id)
        require_organizer(event, user)
        if registration.status != RegistrationStatus.CONFIRMED.value:
            raise BusinessRuleError(
                "Only confirmed registrations can be checked in", "NOT_CONFIRMED",
                ErrorContext(event_id=str(event.id)),
            )
        existing = await self.db.execute(
            select(Attendance.id).where(Attendance.registration_id == registration_id),
        )
        if existing.first() is not None:
            raise ConflictError("Attendee already checked in", "ALREADY_CHECKED_IN")

        attendance = Attendance(
            event_id=event.id,
            registration_id=registration.id,
            checked_in_by=user.id,
            check_in_method=method,
        )
        self.db.add(attendance)
        await self.db.commit()
        await self.db.refresh(attendance)
        logger.info("Attendee checked in", extra={"event_id": event.id})
        return attendance
