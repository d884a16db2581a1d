"""Chat — verifies channels, privacy, cursor pagination, mentions, and edits.

Invariants:
    - Private channels are invisible to non-members
    - Pages come back chronological with a (created_at, id) cursor for older rows
    - Mentions notify each mentioned user once, never the sender
"""

from uuid import UUID

from eventdesk.core.clock import utc_now
from eventdesk.models.channel import ChannelMessage

from tests.services.factories import add_member, auth


async def _channel(client, user, workspace_id, name) -> dict:
    channels = (await client.get(
        f"/api/v1/workspaces/{workspace_id}/channels", headers=auth(user),
    )).json()
    return next(c for c in channels if c["name"] == name)


async def _post(client, user, channel_id, content, **extra):
    return await client.post(
        f"/api/v1/channels/{channel_id}/messages",
        json={"content": content, **extra}, headers=auth(user),
    )


async def test_create_channel(client, organizer, root_workspace):
    ws = root_workspace["id"]
    resp = await client.post(
        f"/api/v1/workspaces/{ws}/channels",
        json={"name": " Logistics ", "type": "GENERAL"}, headers=auth(organizer),
    )
    assert resp.status_code == 201
    assert resp.json()["name"] == "logistics"

    dup = await client.post(
        f"/api/v1/workspaces/{ws}/channels",
        json={"name": "LOGISTICS"}, headers=auth(organizer),
    )
    assert dup.status_code == 409
    assert dup.json()["error"]["code"] == "CHANNEL_EXISTS"


async def test_private_channel_hidden(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    private = (await client.post(
        f"/api/v1/workspaces/{ws}/channels",
        json={"name": "leads", "is_private": True}, headers=auth(organizer),
    )).json()

    visible = (await client.get(
        f"/api/v1/workspaces/{ws}/channels", headers=auth(volunteer),
    )).json()
    assert "leads" not in [c["name"] for c in visible]

    blocked = await client.get(
        f"/api/v1/channels/{private['id']}/messages", headers=auth(volunteer),
    )
    assert blocked.status_code == 403
    assert (await client.get(
        f"/api/v1/channels/{private['id']}/messages", headers=auth(organizer),
    )).status_code == 200


async def test_mentions_notify_others_only(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    general = await _channel(client, organizer, ws, "general")

    content = (
        f"@[Vic Volunteer]({volunteer.id}) and @[Olivia Organizer]({organizer.id}) "
        f"please check the stage plan"
    )
    resp = await _post(client, organizer, general["id"], content)
    assert resp.status_code == 201
    assert resp.json()["sender_name"] == "Olivia Organizer"

    inbox = (await client.get("/api/v1/notifications", headers=auth(volunteer))).json()
    mentions = [n for n in inbox if n["type"] == "mention"]
    assert len(mentions) == 1
    assert mentions[0]["title"] == "Olivia Organizer mentioned you"
    assert mentions[0]["message"].startswith("in #general: @[Vic Volunteer]")

    own = (await client.get("/api/v1/notifications", headers=auth(organizer))).json()
    assert [n for n in own if n["type"] == "mention"] == []


async def test_cursor_pagination(client, organizer, root_workspace):
    general = await _channel(client, organizer, root_workspace["id"], "general")
    for i in range(1, 6):
        await _post(client, organizer, general["id"], f"msg {i}")

    url = f"/api/v1/channels/{general['id']}/messages"
    newest = (await client.get(url, params={"limit": 2}, headers=auth(organizer))).json()
    assert [m["content"] for m in newest["messages"]] == ["msg 4", "msg 5"]
    assert newest["has_more"] is True

    older = (await client.get(
        url, params={"limit": 2, "before": newest["next_cursor"]}, headers=auth(organizer),
    )).json()
    assert [m["content"] for m in older["messages"]] == ["msg 2", "msg 3"]

    oldest = (await client.get(
        url, params={"limit": 2, "before": older["next_cursor"]}, headers=auth(organizer),
    )).json()
    assert [m["content"] for m in oldest["messages"]] == ["msg 1"]
    assert oldest["has_more"] is False
    assert oldest["next_cursor"] is None


async def test_cursor_splits_messages_sharing_a_timestamp(
    client, test_db, organizer, root_workspace,
):
    general = await _channel(client, organizer, root_workspace["id"], "general")
    stamp = utc_now()
    for i in range(1, 4):
        test_db.add(ChannelMessage(
            channel_id=UUID(general["id"]), sender_id=organizer.id,
            sender_name=organizer.full_name, content=f"same {i}", created_at=stamp,
        ))
    await test_db.commit()

    url = f"/api/v1/channels/{general['id']}/messages"
    first = (await client.get(url, params={"limit": 2}, headers=auth(organizer))).json()
    assert first["has_more"] is True
    assert first["next_cursor_id"] == first["messages"][0]["id"]

    rest = (await client.get(url, params={
        "limit": 2, "before": first["next_cursor"], "before_id": first["next_cursor_id"],
    }, headers=auth(organizer))).json()
    assert rest["has_more"] is False
    seen = [m["content"] for m in rest["messages"] + first["messages"]]
    assert sorted(seen) == ["same 1", "same 2", "same 3"]


async def test_edit_and_delete(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    general = await _channel(client, organizer, ws, "general")
    message = (await _post(client, volunteer, general["id"], "draft")).json()

    stolen = await client.patch(
        f"/api/v1/messages/{message['id']}", json={"content": "hijack"},
        headers=auth(organizer),
    )
    assert stolen.status_code == 403

    edited = await client.patch(
        f"/api/v1/messages/{message['id']}", json={"content": "final"},
        headers=auth(volunteer),
    )
    assert edited.json()["content"] == "final"
    assert edited.json()["is_edited"] is True

    # owner holds MANAGE_CHANNELS
    removed = await client.delete(f"/api/v1/messages/{message['id']}", headers=auth(organizer))
    assert removed.status_code == 204


async def test_reply_must_share_channel(client, organizer, root_workspace):
    ws = root_workspace["id"]
    general = await _channel(client, organizer, ws, "general")
    tasks = await _channel(client, organizer, ws, "tasks")
    parent = (await _post(client, organizer, general["id"], "question")).json()

    reply = await _post(client, organizer, general["id"], "answer", reply_to_id=parent["id"])
    assert reply.json()["message_type"] == "reply"

    stray = await _post(client, organizer, tasks["id"], "answer", reply_to_id=parent["id"])
    assert stray.status_code == 404
