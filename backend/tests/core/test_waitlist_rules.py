"""Waitlist Rules — verifies contiguous positions and queue moves.

Tests:
    - Positions stay 1..n after compaction and moves
    - Move targets are clamped to the queue bounds
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from eventdesk.core.waitlist_rules import (
    compact_positions, move_entry, next_position, waitlist_stats,
)


def test_next_position():
    assert next_position([]) == 1
    assert next_position([1, 2, 3]) == 4


def test_compact_positions_after_removal():
    a, b, c = uuid4(), uuid4(), uuid4()
    # b left the queue
    assert compact_positions([a, c]) == {a: 1, c: 2}
    assert b not in compact_positions([a, c])


def test_move_to_front():
    a, b, c = uuid4(), uuid4(), uuid4()
    assert move_entry([a, b, c], c, 1) == {c: 1, a: 2, b: 3}


def test_move_backwards():
    a, b, c = uuid4(), uuid4(), uuid4()
    assert move_entry([a, b, c], a, 2) == {b: 1, a: 2, c: 3}


def test_move_clamps_position():
    a, b = uuid4(), uuid4()
    assert move_entry([a, b], a, 99) == {b: 1, a: 2}
    assert move_entry([a, b], b, -5) == {b: 1, a: 2}


def test_move_unknown_entry():
    with pytest.raises(ValueError):
        move_entry([uuid4()], uuid4(), 1)


def test_waitlist_stats():
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    stats = waitlist_stats(
        ["waiting", "waiting", "promoted", "removed"],
        [now - timedelta(days=2), now - timedelta(days=3)],
        now,
    )
    assert stats == {
        "waiting": 2, "promoted": 1, "removed": 1, "average_wait_days": 2.5,
    }


def test_waitlist_stats_empty():
    stats = waitlist_stats([], [], datetime.now(timezone.utc))
    assert stats["average_wait_days"] == 0.0
