"""Waitlist Rules — position arithmetic for the per-event waiting queue.

Invariants:
    - Waiting positions are 1-based and contiguous (1..n, no gaps)
    - Leaving the queue (promote/remove) compacts everyone behind
    - Moving an entry shifts the entries between old and new positions by one
"""

from collections import Counter
from datetime import datetime
from uuid import UUID

from eventdesk.core.clock import ensure_utc
from eventdesk.core.domain_types import WaitlistStatus


def next_position(positions: list[int]) -> int:
    return max(positions, default=0) + 1


def compact_positions(ordered_ids: list[UUID]) -> dict[UUID, int]:
    """Reassign 1..n following the given order."""
    return {entry_id: index + 1 for index, entry_id in enumerate(ordered_ids)}


def move_entry(
    ordered_ids: list[UUID], entry_id: UUID, new_position: int,
) -> dict[UUID, int]:
    """Positions after moving entry_id to new_position (clamped to 1..n)."""
    if entry_id not in ordered_ids:
        raise ValueError(f"{entry_id} is not in the waiting queue")
    target = min(max(new_position, 1), len(ordered_ids))
    reordered = [i for i in ordered_ids if i != entry_id]
    reordered.insert(target - 1, entry_id)
    return compact_positions(reordered)


def waitlist_stats(
    statuses: list[str], waiting_since: list[datetime], now: datetime,
) -> dict:
    counts = Counter(statuses)
    waits = [(now - ensure_utc(ts)).total_seconds() / 86_400 for ts in waiting_since]
    return {
        "waiting": counts.get(WaitlistStatus.WAITING.value, 0),
        "promoted": counts.get(WaitlistStatus.PROMOTED.value, 0),
        "removed": counts.get(WaitlistStatus.REMOVED.value, 0),
        "average_wait_days": round(sum(waits) / len(waits), 1) if waits else 0.0,
    }
