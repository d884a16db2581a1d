"""Event Rules — pure validation and computation for event lifecycle and landing pages.

Invariants:
    - All functions are PURE: no IO, no DB, "now" is always passed in
    - Validators return an error descriptor dict or None; the shell raises
    - EVENT_STATUS_TRANSITIONS is the single source of truth for status changes
    - Slugs are lowercase ascii, words joined by "-", never empty
"""

import re
import secrets
import unicodedata
from collections import Counter
from datetime import datetime
from uuid import UUID

from eventdesk.core.clock import ensure_utc
from eventdesk.core.domain_types import (
    EventMode, EventStatus, EventVisibility, RegistrationStatus,
)


EVENT_STATUS_TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.DRAFT: frozenset({EventStatus.PUBLISHED, EventStatus.CANCELLED}),
    EventStatus.PUBLISHED: frozenset({
        EventStatus.ONGOING, EventStatus.CANCELLED, EventStatus.DRAFT,
    }),
    EventStatus.ONGOING: frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED}),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}

REGISTRATION_OPEN_STATUSES = frozenset({EventStatus.PUBLISHED, EventStatus.ONGOING})
INVITE_LINK_BYTES = 8  # 16 hex chars
MAX_SLUG_LENGTH = 80


def validate_event_mode(
    mode: EventMode, venue: dict | None, virtual_links: dict | None,
) -> dict | None:
    """Offline needs a venue, online needs links, hybrid needs both."""
    if mode == EventMode.OFFLINE and not venue:
        return {
            "error_code": "VENUE_REQUIRED",
            "field": "venue",
            "message": "Offline events require venue information",
        }
    if mode == EventMode.ONLINE and not virtual_links:
        return {
            "error_code": "VIRTUAL_LINKS_REQUIRED",
            "field": "virtual_links",
            "message": "Online events require virtual meeting links",
        }
    if mode == EventMode.HYBRID and (not venue or not virtual_links):
        return {
            "error_code": "VENUE_AND_LINKS_REQUIRED",
            "field": "venue" if not venue else "virtual_links",
            "message": "Hybrid events require both venue and virtual meeting links",
        }
    return None


def validate_event_dates(
    start_date: datetime,
    end_date: datetime,
    registration_deadline: datetime | None,
) -> dict | None:
    start, end = ensure_utc(start_date), ensure_utc(end_date)
    if end <= start:
        return {
            "error_code": "INVALID_DATES",
            "field": "end_date",
            "message": "Event end must be after its start",
        }
    deadline = ensure_utc(registration_deadline)
    if deadline is not None and deadline > end:
        return {
            "error_code": "INVALID_DEADLINE",
            "field": "registration_deadline",
            "message": "Registration deadline cannot be after the event ends",
        }
    return None


def check_status_transition(
    current: EventStatus, target: EventStatus,
) -> dict | None:
    if target == current:
        return None
    if target not in EVENT_STATUS_TRANSITIONS[current]:
        return {
            "error_code": "INVALID_STATUS_TRANSITION",
            "message": f"Cannot move event from {current.value} to {target.value}",
        }
    return None


def slugify(name: str) -> str:
    """Lowercase ascii slug. Falls back to 'event' for names with no ascii letters."""
    normalized = unicodedata.normalize("NFKD", name)
    ascii_name = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or "event"


def slug_candidate(base_slug: str, attempt: int) -> str:
    """attempt 0 -> base, 1 -> base-1, 2 -> base-2 ..."""
    return base_slug if attempt == 0 else f"{base_slug}-{attempt}"


def generate_invite_link() -> str:
    return secrets.token_hex(INVITE_LINK_BYTES)


def is_registration_open(
    status: EventStatus,
    registration_deadline: datetime | None,
    end_date: datetime,
    now: datetime,
) -> bool:
    if status not in REGISTRATION_OPEN_STATUSES:
        return False
    deadline = ensure_utc(registration_deadline)
    if deadline is not None and deadline < now:
        return False
    if ensure_utc(end_date) < now:
        return False
    return True


def spots_remaining(capacity: int | None, confirmed_count: int) -> int | None:
    if capacity is None:
        return None
    return max(0, capacity - confirmed_count)


def registrations_over_time(registered_at: list[datetime]) -> list[dict]:
    """Daily registration counts, sorted by date (YYYY-MM-DD)."""
    counts = Counter(ensure_utc(ts).date().isoformat() for ts in registered_at)
    return [
        {"date": day, "count": counts[day]} for day in sorted(counts)
    ]


def compute_event_analytics(
    capacity: int | None,
    registrations: list[tuple[str, datetime]],
    checked_in: int,
) -> dict:
    """Registration/attendance summary. registrations = [(status, created_at)]."""
    statuses = Counter(status for status, _ in registrations)
    confirmed = statuses.get(RegistrationStatus.CONFIRMED.value, 0)
    check_in_rate = (checked_in / confirmed) * 100 if confirmed > 0 else 0.0
    utilization = (confirmed / capacity) * 100 if capacity else None
    return {
        "registration_stats": {
            "total": len(registrations),
            "confirmed": confirmed,
            "pending": statuses.get(RegistrationStatus.PENDING.value, 0),
            "waitlisted": statuses.get(RegistrationStatus.WAITLISTED.value, 0),
            "cancelled": statuses.get(RegistrationStatus.CANCELLED.value, 0),
            "over_time": registrations_over_time([ts for _, ts in registrations]),
        },
        "attendance_stats": {
            "total_checked_in": checked_in,
            "check_in_rate": round(check_in_rate, 2),
        },
        "capacity_utilization": (
            round(utilization, 2) if utilization is not None else None
        ),
    }


def can_access_event(
    visibility: EventVisibility,
    event_invite_link: str | None,
    provided_invite_link: str | None,
    user_id: UUID | None,
    organizer_id: UUID,
) -> bool:
    """Public and unlisted events are open; private needs the invite or organizer."""
    if visibility != EventVisibility.PRIVATE:
        return True
    if provided_invite_link and event_invite_link == provided_invite_link:
        return True
    return user_id is not None and user_id == organizer_id
