"""Event Service — event CRUD, status lifecycle, landing page, and analytics.

Invariants:
    - landing_page_url is unique: name slug, then slug-1, slug-2, ...
    - PRIVATE events always carry an invite link; others never do
    - Only the organizer mutates an event or reads its analytics
    - Mode/venue/virtual-link consistency is re-checked on every update
      against the merged (stored + incoming) values
    - COMPLETED winds the event's ROOT workspace down and CANCELLED
      dissolves it, in the same transaction as the status change

Design Decisions:
    - Slug uniqueness checked with a query loop rather than catching
      IntegrityError: collisions are rare and the loop keeps the session usable
    - Spots remaining counts confirmed tickets (sum of quantities), so a
      3-ticket order consumes 3 seats of capacity
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    EventMode, EventStatus, EventVisibility, RegistrationStatus,
)
from eventdesk.core.errors import ErrorContext, PermissionDeniedError, ResourceNotFoundError
from eventdesk.core.event_rules import (
    can_access_event, check_status_transition, compute_event_analytics,
    generate_invite_link, is_registration_open, slug_candidate, slugify,
    spots_remaining, validate_event_dates, validate_event_mode,
)
from eventdesk.models.event import Event
from eventdesk.models.registration import Attendance, Registration
from eventdesk.models.user import User
from eventdesk.schemas.event import EventCreate, EventUpdate
from eventdesk.services.guards import (
    get_event_or_404, get_user_or_404, raise_conflict, raise_validation,
    require_organizer,
)
from eventdesk.services.workspace_lifecycle import WorkspaceLifecycleService

logger = logging.getLogger(__name__)


class EventService:
    """Event operations for organizers and the public landing page."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create / update ──────────────────────────────────────────

    async def create_event(self, body: EventCreate, organizer: User) -> Event:
        raise_validation(validate_event_mode(body.mode, body.venue, body.virtual_links))
        raise_validation(validate_event_dates(
            body.start_date, body.end_date, body.registration_deadline,
        ))
        event = Event(
            name=body.name,
            description=body.description,
            mode=body.mode.value,
            start_date=body.start_date,
            end_date=body.end_date,
            capacity=body.capacity,
            registration_deadline=body.registration_deadline,
            organizer_id=organizer.id,
            visibility=body.visibility.value,
            status=EventStatus.DRAFT.value,
            branding=body.branding,
            venue=body.venue,
            virtual_links=body.virtual_links,
            landing_page_url=await self._unique_slug(body.name),
            invite_link=(
                generate_invite_link()
                if body.visibility == EventVisibility.PRIVATE else None
            ),
            leaderboard_enabled=body.leaderboard_enabled,
        )
        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)
        logger.info(
            f"Event created: {event.landing_page_url}",
            extra={"event_id": event.id, "user_id": organizer.id},
        )
        return event

    async def update_event(
        self, event_id: UUID, body: EventUpdate, user: User,
    ) -> Event:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        changes = body.model_dump(exclude_unset=True)

        merged_mode = EventMode(changes.get("mode") or event.mode)
        raise_validation(validate_event_mode(
            merged_mode,
            changes["venue"] if "venue" in changes else event.venue,
            changes["virtual_links"] if "virtual_links" in changes else event.virtual_links,
        ))
        raise_validation(validate_event_dates(
            changes.get("start_date") or event.start_date,
            changes.get("end_date") or event.end_date,
            changes["registration_deadline"]
            if "registration_deadline" in changes else event.registration_deadline,
        ))

        for key, value in changes.items():
            if key in ("name", "start_date", "end_date", "mode", "visibility") and value is None:
                continue
            setattr(event, key, value.value if hasattr(value, "value") else value)

        if EventVisibility(event.visibility) == EventVisibility.PRIVATE:
            event.invite_link = event.invite_link or generate_invite_link()
        else:
            event.invite_link = None

        await self.db.commit()
        await self.db.refresh(event)
        logger.info("Event updated", extra={"event_id": event.id})
        return event

    async def change_status(
        self, event_id: UUID, target: EventStatus, user: User,
    ) -> Event:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        raise_conflict(check_status_transition(EventStatus(event.status), target))
        event.status = target.value
        await WorkspaceLifecycleService(self.db).apply_event_status(event, target)
        await self.db.commit()
        await self.db.refresh(event)
        logger.info(
            f"Event status -> {target.value}", extra={"event_id": event.id},
        )
        return event

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        attempt = 0
        while True:
            candidate = slug_candidate(base, attempt)
            taken = await self.db.execute(
                select(Event.id).where(Event.landing_page_url == candidate),
            )
            if taken.scalar_one_or_none() is None:
                return candidate
            attempt += 1

    # ─── Reads ────────────────────────────────────────────────────

    async def get_event(self, event_id: UUID) -> Event:
        return await get_event_or_404(self.db, event_id)

    async def get_event_by_slug(self, slug: str) -> Event:
        result = await self.db.execute(
            select(Event).where(Event.landing_page_url == slug),
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise ResourceNotFoundError("Event", slug)
        return event

    async def list_events_by_organizer(self, organizer_id: UUID) -> list[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.organizer_id == organizer_id)
            .order_by(Event.created_at.desc()),
        )
        return list(result.scalars().all())

    async def confirmed_tickets(self, event_id: UUID) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Registration.quantity), 0)).where(
                Registration.event_id == event_id,
                Registration.status == RegistrationStatus.CONFIRMED.value,
            ),
        )
        return int(result.scalar_one())

    def validate_private_access(
        self, event: Event, invite: str | None, user_id: UUID | None,
    ) -> None:
        if not can_access_event(
            EventVisibility(event.visibility), event.invite_link, invite,
            user_id, event.organizer_id,
        ):
            raise PermissionDeniedError(
                "This event is private. A valid invite link is required",
                ErrorContext(event_id=str(event.id)),
            )

    async def landing_page(
        self, slug: str, invite: str | None, user_id: UUID | None,
    ) -> dict:
        event = await self.get_event_by_slug(slug)
        self.validate_private_access(event, invite, user_id)
        organizer = await get_user_or_404(self.db, event.organizer_id)
        confirmed = await self.confirmed_tickets(event.id)
        return {
            "event": event,
            "organizer": {"id": organizer.id, "full_name": organizer.full_name},
            "registration_open": is_registration_open(
                EventStatus(event.status), event.registration_deadline,
                event.end_date, utc_now(),
            ),
            "spots_remaining": spots_remaining(event.capacity, confirmed),
        }

    async def analytics(self, event_id: UUID, user: User) -> dict:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        rows = await self.db.execute(
            select(Registration.status, Registration.created_at)
            .where(Registration.event_id == event_id),
        )
        checked_in = await self.db.execute(
            select(func.count(Attendance.id)).where(Attendance.event_id == event_id),
        )
        return compute_event_analytics(
            event.capacity,
            [(status, created_at) for status, created_at in rows.all()],
            int(checked_in.scalar_one()),
        )
