"""Notifications & broadcasts — verifies inbox state and broadcast fan-out."""

from tests.services.factories import add_member, auth


async def _broadcast(client, user, workspace_id, **fields):
    body = {"title": "Doors open", "content": "Doors open at 9", **fields}
    return await client.post(
        f"/api/v1/workspaces/{workspace_id}/broadcasts", json=body, headers=auth(user),
    )


async def test_inbox_read_state(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    assert (await client.get(
        "/api/v1/notifications/unread-count", headers=auth(volunteer),
    )).json() == {"unread": 0}

    await _broadcast(client, organizer, ws)
    await _broadcast(client, organizer, ws, title="Lunch", content="Lunch at 1")
    assert (await client.get(
        "/api/v1/notifications/unread-count", headers=auth(volunteer),
    )).json() == {"unread": 2}

    inbox = (await client.get("/api/v1/notifications", headers=auth(volunteer))).json()
    assert {n["type"] for n in inbox} == {"broadcast"}

    foreign = await client.post(
        f"/api/v1/notifications/{inbox[0]['id']}/read", headers=auth(organizer),
    )
    assert foreign.status_code == 403

    read = await client.post(
        f"/api/v1/notifications/{inbox[0]['id']}/read", headers=auth(volunteer),
    )
    assert read.json()["is_read"] is True

    unread = (await client.get(
        "/api/v1/notifications", params={"unread_only": True}, headers=auth(volunteer),
    )).json()
    assert len(unread) == 1

    assert (await client.post(
        "/api/v1/notifications/read-all", headers=auth(volunteer),
    )).json() == {"updated": 1}


async def test_broadcast_reaches_children(
    client, organizer, volunteer, participant, root_workspace,
):
    ws = root_workspace["id"]
    dept = (await client.post(
        f"/api/v1/workspaces/{ws}/children",
        json={"name": "Ops", "workspace_type": "DEPARTMENT"}, headers=auth(organizer),
    )).json()
    await add_member(client, organizer, ws, volunteer)
    await add_member(client, organizer, dept["id"], participant)

    local = (await _broadcast(client, organizer, ws)).json()
    assert local["delivery_stats"]["recipients"] == 1
    assert local["delivery_stats"]["workspaces"] == 1

    wide = await _broadcast(
        client, organizer, ws, include_children=True, priority="urgent",
    )
    assert wide.status_code == 201
    assert wide.json()["delivery_stats"]["recipients"] == 2
    assert wide.json()["delivery_stats"]["workspaces"] == 2

    inbox = (await client.get("/api/v1/notifications", headers=auth(participant))).json()
    assert inbox[0]["metadata"]["priority"] == "urgent"

    listed = (await client.get(
        f"/api/v1/workspaces/{ws}/broadcasts", headers=auth(volunteer),
    )).json()
    assert len(listed) == 2


async def test_volunteer_cannot_broadcast(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    resp = await _broadcast(client, volunteer, ws)
    assert resp.status_code == 403
