"""Event Rules — verifies mode/date validation, status transitions, slugs, access.

Tests:
    - Mode coherence: offline/venue, online/links, hybrid/both
    - Status machine: DRAFT → PUBLISHED → ONGOING → COMPLETED, CANCELLED terminal
    - Registration window closes on status, deadline, or end date
    - Private events need the invite link or the organizer
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from eventdesk.core.domain_types import (
    EventMode, EventStatus, EventVisibility, RegistrationStatus,
)
from eventdesk.core.event_rules import (
    can_access_event, check_status_transition, compute_event_analytics,
    generate_invite_link, is_registration_open, slug_candidate, slugify,
    spots_remaining, validate_event_dates, validate_event_mode,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
VENUE = {"name": "Hall A", "address": "1 Main St"}
LINKS = {"meeting_url": "https://meet.example.com/x"}


# ─── Mode ────────────────────────────────────────────────────────

def test_offline_without_venue_rejected():
    error = validate_event_mode(EventMode.OFFLINE, None, LINKS)
    assert error["error_code"] == "VENUE_REQUIRED"
    assert error["field"] == "venue"


def test_online_without_links_rejected():
    error = validate_event_mode(EventMode.ONLINE, VENUE, None)
    assert error["error_code"] == "VIRTUAL_LINKS_REQUIRED"


@pytest.mark.parametrize("venue,links,field", [
    (None, LINKS, "venue"),
    (VENUE, None, "virtual_links"),
])
def test_hybrid_needs_both(venue, links, field):
    error = validate_event_mode(EventMode.HYBRID, venue, links)
    assert error["error_code"] == "VENUE_AND_LINKS_REQUIRED"
    assert error["field"] == field


def test_coherent_modes_pass():
    assert validate_event_mode(EventMode.OFFLINE, VENUE, None) is None
    assert validate_event_mode(EventMode.ONLINE, None, LINKS) is None
    assert validate_event_mode(EventMode.HYBRID, VENUE, LINKS) is None


# ─── Dates ───────────────────────────────────────────────────────

def test_end_before_start_rejected():
    error = validate_event_dates(NOW, NOW - timedelta(hours=1), None)
    assert error["error_code"] == "INVALID_DATES"


def test_end_equal_start_rejected():
    assert validate_event_dates(NOW, NOW, None)["error_code"] == "INVALID_DATES"


def test_deadline_after_end_rejected():
    error = validate_event_dates(NOW, NOW + timedelta(days=1), NOW + timedelta(days=2))
    assert error["error_code"] == "INVALID_DEADLINE"


def test_naive_dates_treated_as_utc():
    start = datetime(2026, 5, 1, 10, 0)
    end = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert validate_event_dates(start, end, None) is None


# ─── Status transitions ──────────────────────────────────────────

@pytest.mark.parametrize("current,target", [
    (EventStatus.DRAFT, EventStatus.PUBLISHED),
    (EventStatus.PUBLISHED, EventStatus.DRAFT),
    (EventStatus.PUBLISHED, EventStatus.ONGOING),
    (EventStatus.ONGOING, EventStatus.COMPLETED),
    (EventStatus.ONGOING, EventStatus.CANCELLED),
])
def test_allowed_transitions(current, target):
    assert check_status_transition(current, target) is None


@pytest.mark.parametrize("current,target", [
    (EventStatus.DRAFT, EventStatus.COMPLETED),
    (EventStatus.COMPLETED, EventStatus.ONGOING),
    (EventStatus.CANCELLED, EventStatus.PUBLISHED),
])
def test_rejected_transitions(current, target):
    error = check_status_transition(current, target)
    assert error["error_code"] == "INVALID_STATUS_TRANSITION"


def test_same_status_is_noop():
    assert check_status_transition(EventStatus.COMPLETED, EventStatus.COMPLETED) is None


# ─── Slugs & invite links ────────────────────────────────────────

def test_slugify_basic():
    assert slugify("  PyCon India 2026! ") == "pycon-india-2026"


def test_slugify_strips_accents():
    assert slugify("Café Résumé") == "cafe-resume"


def test_slugify_falls_back_for_non_ascii():
    assert slugify("東京") == "event"


def test_slug_candidate_suffixes():
    assert slug_candidate("demo", 0) == "demo"
    assert slug_candidate("demo", 2) == "demo-2"


def test_invite_link_is_16_hex_chars():
    link = generate_invite_link()
    assert len(link) == 16
    int(link, 16)


# ─── Registration window & capacity ──────────────────────────────

def test_registration_open_when_published():
    assert is_registration_open(
        EventStatus.PUBLISHED, None, NOW + timedelta(days=3), NOW,
    )


def test_registration_closed_for_draft():
    assert not is_registration_open(EventStatus.DRAFT, None, NOW + timedelta(days=3), NOW)


def test_registration_closed_after_deadline():
    assert not is_registration_open(
        EventStatus.PUBLISHED, NOW - timedelta(minutes=1), NOW + timedelta(days=3), NOW,
    )


def test_registration_closed_after_event_end():
    assert not is_registration_open(
        EventStatus.ONGOING, None, NOW - timedelta(minutes=1), NOW,
    )


def test_spots_remaining():
    assert spots_remaining(None, 50) is None
    assert spots_remaining(10, 3) == 7
    assert spots_remaining(10, 12) == 0


# ─── Analytics ───────────────────────────────────────────────────

def test_analytics_counts_and_rates():
    day1 = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)
    day2 = datetime(2026, 4, 2, 9, 0, tzinfo=timezone.utc)
    registrations = [
        (RegistrationStatus.CONFIRMED.value, day1),
        (RegistrationStatus.CONFIRMED.value, day1),
        (RegistrationStatus.CONFIRMED.value, day2),
        (RegistrationStatus.CONFIRMED.value, day2),
        (RegistrationStatus.CANCELLED.value, day2),
    ]
    result = compute_event_analytics(10, registrations, checked_in=3)
    stats = result["registration_stats"]
    assert stats["total"] == 5
    assert stats["confirmed"] == 4
    assert stats["cancelled"] == 1
    assert stats["over_time"] == [
        {"date": "2026-04-01", "count": 2},
        {"date": "2026-04-02", "count": 3},
    ]
    assert result["attendance_stats"]["check_in_rate"] == 75.0
    assert result["capacity_utilization"] == 40.0


def test_analytics_without_confirmed_or_capacity():
    result = compute_event_analytics(None, [], checked_in=0)
    assert result["attendance_stats"]["check_in_rate"] == 0.0
    assert result["capacity_utilization"] is None


# ─── Access ──────────────────────────────────────────────────────

def test_public_and_unlisted_are_open():
    organizer = uuid4()
    assert can_access_event(EventVisibility.PUBLIC, None, None, None, organizer)
    assert can_access_event(EventVisibility.UNLISTED, None, None, None, organizer)


def test_private_requires_matching_invite():
    organizer = uuid4()
    assert can_access_event(EventVisibility.PRIVATE, "abc", "abc", None, organizer)
    assert not can_access_event(EventVisibility.PRIVATE, "abc", "xyz", None, organizer)
    assert not can_access_event(EventVisibility.PRIVATE, "abc", None, uuid4(), organizer)


def test_private_open_to_organizer():
    organizer = uuid4()
    assert can_access_event(EventVisibility.PRIVATE, "abc", None, organizer, organizer)
