"""Clock helpers — timezone-aware timestamps for rule evaluation.

Invariants:
    - Every datetime compared in core/ is UTC-aware
    - Naive values (SQLite round-trips drop tzinfo) are interpreted as UTC
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
