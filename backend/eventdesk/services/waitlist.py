"""Waitlist Service — ordered per-event queue with manual reordering and promotion.

Invariants:
    - WAITING entries hold positions 1..n with no gaps
    - Removing or promoting an entry compacts the positions behind it
    - Promotion reserves inventory on the entry's tier the same way a
      purchase does (SoldOutError when none is left)
    - Promotion without a tier needs room for the whole promoted quantity:
      the entrant's WAITLISTED registration quantity, else 1
    - An entrant who already holds a live (non-WAITLISTED) registration is
      refused on add and on promote with ALREADY_REGISTERED
    - A promoted entry always points at a CONFIRMED registration
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import RegistrationStatus, WaitlistStatus
from eventdesk.core.errors import BusinessRuleError, ConflictError, ErrorContext
from eventdesk.core.waitlist_rules import (
    compact_positions, move_entry, next_position, waitlist_stats,
)
from eventdesk.models.event import Event
from eventdesk.models.registration import Registration
from eventdesk.models.user import User
from eventdesk.models.waitlist_entry import WaitlistEntry
from eventdesk.schemas.waitlist import WaitlistAdd
from eventdesk.services.events import EventService
from eventdesk.services.guards import get_event_or_404, get_or_404, require_organizer
from eventdesk.services.ticket_purchase import (
    already_registered, live_registration, release_tickets, reserve_tickets,
)
from eventdesk.services.ticket_tiers import get_tier_for_event

logger = logging.getLogger(__name__)


class WaitlistService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, event_id: UUID, body: WaitlistAdd, user: User) -> WaitlistEntry:
        """Append to the queue. The organizer adds walk-ins; others add themselves."""
        event = await get_event_or_404(self.db, event_id)
        if body.ticket_tier_id is not None:
            await get_tier_for_event(self.db, event_id, body.ticket_tier_id)
        entrant_id = None if event.organizer_id == user.id else user.id
        if entrant_id is not None:
            await self._ensure_not_holding_ticket(event_id, entrant_id)
        duplicate = await self.db.execute(
            select(WaitlistEntry.id).where(
                WaitlistEntry.event_id == event_id,
                WaitlistEntry.email == body.email,
                WaitlistEntry.status == WaitlistStatus.WAITING.value,
            ),
        )
        if duplicate.first() is not None:
            raise ConflictError(
                "This email is already on the waitlist", "ALREADY_WAITLISTED",
                ErrorContext(event_id=str(event_id)),
            )
        waiting = await self._waiting(event_id)
        entry = WaitlistEntry(
            event_id=event_id,
            ticket_tier_id=body.ticket_tier_id,
            user_id=entrant_id,
            full_name=body.full_name,
            email=body.email,
            phone=body.phone,
            position=next_position([e.position for e in waiting]),
            status=WaitlistStatus.WAITING.value,
        )
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        logger.info(
            f"Waitlist entry added at position {entry.position}",
            extra={"event_id": event_id},
        )
        return entry

    async def list_waiting(self, event_id: UUID, user: User) -> list[WaitlistEntry]:
        await self._require_event_organizer(event_id, user)
        return await self._waiting(event_id)

    async def move(self, entry_id: UUID, position: int, user: User) -> list[WaitlistEntry]:
        entry = await self._get_waiting_entry(entry_id)
        await self._require_event_organizer(entry.event_id, user)
        waiting = await self._waiting(entry.event_id)
        positions = move_entry([e.id for e in waiting], entry.id, position)
        for e in waiting:
            e.position = positions[e.id]
        await self.db.commit()
        return sorted(waiting, key=lambda e: e.position)

    async def remove(self, entry_id: UUID, user: User) -> WaitlistEntry:
        entry = await self._get_waiting_entry(entry_id)
        await self._require_event_organizer(entry.event_id, user)
        entry.status = WaitlistStatus.REMOVED.value
        await self._compact(entry.event_id, exclude=entry.id)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def promote(self, entry_id: UUID, user: User) -> WaitlistEntry:
        entry = await self._get_waiting_entry(entry_id)
        event = await self._require_event_organizer(entry.event_id, user)

        held = None
        if entry.user_id is not None:
            held = await self._ensure_not_holding_ticket(event.id, entry.user_id)
        quantity = held.quantity if held is not None else 1

        tier = None
        if entry.ticket_tier_id is not None:
            tier = await get_tier_for_event(self.db, event.id, entry.ticket_tier_id)
        else:
            await self._ensure_capacity(event, quantity)

        tier_id = tier.id if tier else None
        if tier is not None:
            await reserve_tickets(self.db, tier, quantity)
        try:
            registration = await self._confirm_registration(entry, event, tier, held)
            entry.status = WaitlistStatus.PROMOTED.value
            entry.promoted_at = utc_now()
            entry.registration_id = registration.id
            await self._compact(event.id, exclude=entry.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            if tier_id is not None:
                await release_tickets(self.db, tier_id, quantity)
                await self.db.commit()
            raise

        await self.db.refresh(entry)
        logger.info("Waitlist entry promoted", extra={"event_id": event.id})
        return entry

    async def stats(self, event_id: UUID, user: User) -> dict:
        await self._require_event_organizer(event_id, user)
        result = await self.db.execute(
            select(WaitlistEntry.status, WaitlistEntry.created_at)
            .where(WaitlistEntry.event_id == event_id),
        )
        rows = result.all()
        return waitlist_stats(
            [status for status, _ in rows],
            [created for status, created in rows if status == WaitlistStatus.WAITING.value],
            utc_now(),
        )

    # ─── Internals ────────────────────────────────────────────────

    async def _ensure_not_holding_ticket(
        self, event_id: UUID, user_id: UUID,
    ) -> Registration | None:
        """The entrant's WAITLISTED registration; any other live one is refused."""
        registration = await live_registration(self.db, event_id, user_id)
        if registration is None:
            return None
        if registration.status != RegistrationStatus.WAITLISTED.value:
            raise already_registered(event_id, user_id)
        return registration

    async def _confirm_registration(
        self, entry: WaitlistEntry, event: Event, tier, registration: Registration | None,
    ) -> Registration:
        """Flip the entrant's WAITLISTED registration, or create a new one."""
        if registration is not None and tier is not None and registration.ticket_tier_id is None:
            registration.ticket_tier_id = tier.id
        if registration is None:
            price = tier.price if tier is not None else 0
            registration = Registration(
                event_id=event.id,
                user_id=entry.user_id,
                ticket_tier_id=tier.id if tier is not None else None,
                quantity=1,
                subtotal=price,
                discount_amount=0,
                total_amount=price,
                attendees=[{"name": entry.full_name, "email": entry.email, "phone": entry.phone}],
                form_responses={},
            )
            self.db.add(registration)
        registration.status = RegistrationStatus.CONFIRMED.value
        registration.form_responses = {
            **(registration.form_responses or {}), "promoted_from_waitlist": True,
        }
        await self.db.flush()
        return registration

    async def _ensure_capacity(self, event: Event, quantity: int) -> None:
        if event.capacity is None:
            return
        confirmed = await EventService(self.db).confirmed_tickets(event.id)
        if confirmed + quantity > event.capacity:
            raise BusinessRuleError(
                "Event is at capacity", "EVENT_FULL", ErrorContext(event_id=str(event.id)),
            )

    async def _waiting(self, event_id: UUID) -> list[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(
                WaitlistEntry.event_id == event_id,
                WaitlistEntry.status == WaitlistStatus.WAITING.value,
            )
            .order_by(WaitlistEntry.position, WaitlistEntry.created_at),
        )
        return list(result.scalars().all())

    async def _compact(self, event_id: UUID, exclude: UUID) -> None:
        remaining = [e for e in await self._waiting(event_id) if e.id != exclude]
        positions = compact_positions([e.id for e in remaining])
        for e in remaining:
            e.position = positions[e.id]

    async def _get_waiting_entry(self, entry_id: UUID) -> WaitlistEntry:
        entry = await get_or_404(self.db, WaitlistEntry, entry_id, "WaitlistEntry")
        if entry.status != WaitlistStatus.WAITING.value:
            raise ConflictError(
                f"Waitlist entry is already {entry.status}", "ENTRY_NOT_WAITING",
            )
        return entry

    async def _require_event_organizer(self, event_id: UUID, user: User) -> Event:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        return event
