"""Test factories — seed rows and API shortcuts shared by service tests."""

from datetime import timedelta

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import (
    EventMode, EventStatus, EventVisibility, UserRole,
)
from eventdesk.models.event import Event
from eventdesk.models.user import User


def auth(user) -> dict:
    """Identity header for requests made as `user`."""
    return {"X-User-Id": str(user.id)}


async def make_user(db, email, name, role=UserRole.PARTICIPANT) -> User:
    user = User(email=email, full_name=name, role=role.value)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_event(db, organizer, **overrides) -> Event:
    now = utc_now()
    fields = dict(
        name="Builders Summit",
        mode=EventMode.OFFLINE.value,
        start_date=now + timedelta(days=10),
        end_date=now + timedelta(days=11),
        organizer_id=organizer.id,
        visibility=EventVisibility.PUBLIC.value,
        status=EventStatus.PUBLISHED.value,
        venue={"name": "Hall A", "address": "1 Main St"},
        branding={},
        landing_page_url="builders-summit",
    )
    fields.update(overrides)
    event = Event(**fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def provision(client, organizer, event, template=None, **extra) -> dict:
    body = {"event_id": str(event.id), **extra}
    if template is not None:
        body["template"] = template
    resp = await client.post("/api/v1/workspaces", json=body, headers=auth(organizer))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def add_member(client, owner, workspace_id, user, role="GENERAL_VOLUNTEER") -> dict:
    resp = await client.post(
        f"/api/v1/workspaces/{workspace_id}/members",
        json={"user_id": str(user.id), "role": role},
        headers=auth(owner),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_task(client, user, workspace_id, **fields) -> dict:
    body = {"title": "Book venue", **fields}
    resp = await client.post(
        f"/api/v1/workspaces/{workspace_id}/tasks", json=body, headers=auth(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
