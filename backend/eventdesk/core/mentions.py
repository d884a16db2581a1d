"""Mentions — parse `@[Name](user-id)` tokens and build mention notifications.

Invariants:
    - Only tokens whose id parses as a UUID count as mentions
    - Mentioned ids are de-duplicated, first occurrence order kept
    - The sender never receives a notification for mentioning themself
    - Preview is the first 100 chars of content, "..." appended only when cut
"""

import re
from uuid import UUID

from eventdesk.core.domain_types import NotificationType


MENTION_PATTERN = re.compile(r"@\[([^\]]+)\]\(([^)]+)\)")
PREVIEW_LENGTH = 100


def parse_mentions(content: str) -> list[UUID]:
    seen: list[UUID] = []
    for match in MENTION_PATTERN.finditer(content):
        try:
            user_id = UUID(match.group(2).strip())
        except ValueError:
            continue
        if user_id not in seen:
            seen.append(user_id)
    return seen


def message_preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


def build_mention_notifications(
    *,
    content: str,
    mentioned_ids: list[UUID],
    sender_id: UUID,
    sender_name: str,
    channel_id: UUID,
    channel_name: str,
    workspace_id: UUID,
    message_id: UUID,
) -> list[dict]:
    """One notification payload per mentioned user, excluding the sender."""
    preview = message_preview(content)
    return [
        {
            "user_id": user_id,
            "type": NotificationType.MENTION.value,
            "title": f"{sender_name} mentioned you",
            "message": f"in #{channel_name}: {preview}",
            "link": f"/workspace/{workspace_id}?channel={channel_id}",
            "metadata": {
                "channel_id": str(channel_id),
                "message_id": str(message_id),
                "mentioned_by": str(sender_id),
            },
        }
        for user_id in mentioned_ids
        if user_id != sender_id
    ]
