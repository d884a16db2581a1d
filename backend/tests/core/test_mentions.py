"""Mentions — verifies token parsing and mention notification payloads.

Tests:
    - Only UUID ids count, duplicates collapse in first-seen order
    - Sender excluded from their own mentions
    - Preview truncated at 100 chars with "..."
"""

from uuid import uuid4

from eventdesk.core.mentions import (
    build_mention_notifications, message_preview, parse_mentions,
)


def test_parse_mentions_dedupes_and_skips_invalid():
    alice, bob = uuid4(), uuid4()
    content = (
        f"hi @[Alice]({alice}) and @[Bob]({bob}), "
        f"again @[Alice]({alice}) and @[Ghost](not-a-uuid)"
    )
    assert parse_mentions(content) == [alice, bob]


def test_parse_mentions_none():
    assert parse_mentions("plain message @someone") == []


def test_preview_truncation():
    assert message_preview("short") == "short"
    long = "x" * 150
    assert message_preview(long) == "x" * 100 + "..."
    assert message_preview("y" * 100) == "y" * 100


def test_notifications_exclude_sender():
    sender, other = uuid4(), uuid4()
    ws, channel, message = uuid4(), uuid4(), uuid4()
    rows = build_mention_notifications(
        content="ping",
        mentioned_ids=[sender, other],
        sender_id=sender,
        sender_name="Sam",
        channel_id=channel,
        channel_name="general",
        workspace_id=ws,
        message_id=message,
    )
    assert len(rows) == 1
    row = rows[0]
    assert row["user_id"] == other
    assert row["type"] == "mention"
    assert row["title"] == "Sam mentioned you"
    assert row["message"] == "in #general: ping"
    assert row["link"] == f"/workspace/{ws}?channel={channel}"
    assert row["metadata"]["message_id"] == str(message)
