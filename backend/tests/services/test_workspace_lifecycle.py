"""Workspace Lifecycle — verifies wind-down, dissolution, revocation, departures.

Invariants:
    - Completing the event winds the ROOT down and notifies active members
    - Cancelling the event dissolves the ROOT and all descendants
    - Dissolution before the event concludes is 422 EVENT_NOT_CONCLUDED
    - DISSOLVED is terminal and read-only
    - Scheduled dissolution runs are SUPER_ADMIN only
"""

from datetime import timedelta

from eventdesk.core.clock import utc_now
from eventdesk.core.domain_types import EventStatus

from tests.services.factories import add_member, auth, create_task, make_event, provision


async def _set_status(client, organizer, event_id, *statuses):
    for target in statuses:
        resp = await client.post(
            f"/api/v1/events/{event_id}/status", json={"status": target},
            headers=auth(organizer),
        )
        assert resp.status_code == 200, resp.text


async def _workspace(client, user, ws_id) -> dict:
    return (await client.get(f"/api/v1/workspaces/{ws_id}", headers=auth(user))).json()


async def test_lifecycle_status(client, organizer, root_workspace):
    resp = await client.get(
        f"/api/v1/workspaces/{root_workspace['id']}/lifecycle", headers=auth(organizer),
    )
    data = resp.json()
    assert data["status"] == "ACTIVE"
    assert data["allowed_transitions"] == ["WINDING_DOWN", "DISSOLVED"]
    assert data["retention_period_days"] == 30
    assert data["days_until_dissolution"] == 41


async def test_event_completion_winds_down(client, organizer, volunteer, event, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    await _set_status(client, organizer, event.id, "ONGOING", "COMPLETED")

    assert (await _workspace(client, organizer, ws))["status"] == "WINDING_DOWN"
    inbox = (await client.get("/api/v1/notifications", headers=auth(volunteer))).json()
    assert [n["type"] for n in inbox] == ["wind_down"]
    assert inbox[0]["metadata"]["workspace_id"] == ws


async def test_event_cancellation_dissolves_tree(client, organizer, event):
    result = await provision(client, organizer, event, template="hackathon")
    root_id = result["workspace"]["id"]
    children = (await client.get(
        f"/api/v1/workspaces/{root_id}/children", headers=auth(organizer),
    )).json()

    await _set_status(client, organizer, event.id, "CANCELLED")

    lifecycle = (await client.get(
        f"/api/v1/workspaces/{root_id}/lifecycle", headers=auth(organizer),
    ))
    # dissolution deactivates every membership, including the owner's
    assert lifecycle.status_code == 403
    mine = (await client.get("/api/v1/workspaces/mine", headers=auth(organizer))).json()
    assert mine == []
    assert len(children) == 3


async def test_dissolve_requires_concluded_event(client, organizer, root_workspace):
    resp = await client.post(
        f"/api/v1/workspaces/{root_workspace['id']}/dissolve", json={},
        headers=auth(organizer),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "EVENT_NOT_CONCLUDED"


async def test_dissolve_schedules_then_immediate(client, organizer, event, root_workspace):
    ws = root_workspace["id"]
    await _set_status(client, organizer, event.id, "ONGOING", "COMPLETED")

    scheduled = await client.post(
        f"/api/v1/workspaces/{ws}/dissolve", json={}, headers=auth(organizer),
    )
    assert scheduled.status_code == 200
    assert scheduled.json()["status"] == "WINDING_DOWN"

    now = await client.post(
        f"/api/v1/workspaces/{ws}/dissolve", json={"retention_days": 0},
        headers=auth(organizer),
    )
    assert now.json()["status"] == "DISSOLVED"
    assert now.json()["dissolved_at"] is not None
    assert now.json()["settings"]["retention_period_days"] == 0


async def test_dissolving_active_workspace_notifies_members(
    client, test_db, organizer, volunteer,
):
    ended = await make_event(
        test_db, organizer, name="Spring Meetup", landing_page_url="spring-meetup",
        start_date=utc_now() - timedelta(days=3), end_date=utc_now() - timedelta(days=2),
    )
    ws = (await provision(client, organizer, ended))["workspace"]["id"]
    await add_member(client, organizer, ws, volunteer)

    resp = await client.post(
        f"/api/v1/workspaces/{ws}/dissolve", json={}, headers=auth(organizer),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "WINDING_DOWN"
    inbox = (await client.get("/api/v1/notifications", headers=auth(volunteer))).json()
    assert [n["type"] for n in inbox] == ["wind_down"]
    assert inbox[0]["title"] == "Spring Meetup Workspace is winding down"


async def test_wind_down_and_reactivate(client, organizer, root_workspace):
    ws = root_workspace["id"]
    down = await client.post(f"/api/v1/workspaces/{ws}/wind-down", headers=auth(organizer))
    assert down.json()["status"] == "WINDING_DOWN"

    again = await client.post(f"/api/v1/workspaces/{ws}/wind-down", headers=auth(organizer))
    assert again.status_code == 422
    assert again.json()["error"]["code"] == "WORKSPACE_NOT_ACTIVE"

    up = await client.post(f"/api/v1/workspaces/{ws}/reactivate", headers=auth(organizer))
    assert up.json()["status"] == "ACTIVE"

    twice = await client.post(f"/api/v1/workspaces/{ws}/reactivate", headers=auth(organizer))
    assert twice.status_code == 409


async def test_emergency_revoke_is_terminal(client, organizer, root_workspace):
    ws = root_workspace["id"]
    resp = await client.post(
        f"/api/v1/workspaces/{ws}/emergency-revoke",
        json={"reason": "Credentials leaked"}, headers=auth(organizer),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "DISSOLVED"
    # owner membership is gone, so further management is denied
    follow_up = await client.post(
        f"/api/v1/workspaces/{ws}/reactivate", headers=auth(organizer),
    )
    assert follow_up.status_code == 403


async def test_early_departure_reassigns_open_tasks(
    client, organizer, volunteer, root_workspace,
):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    open_task = await create_task(
        client, organizer, ws, title="Label cables", description="All racks",
        assigned_to=str(volunteer.id),
    )
    done_task = await create_task(
        client, organizer, ws, title="Order cables", assigned_to=str(volunteer.id),
    )
    await client.post(
        f"/api/v1/tasks/{done_task['id']}/progress",
        json={"status": "COMPLETED"}, headers=auth(organizer),
    )

    resp = await client.post(
        f"/api/v1/workspaces/{ws}/early-departure",
        json={"user_id": str(volunteer.id), "manager_id": str(organizer.id)},
        headers=auth(organizer),
    )
    assert resp.json() == {"reassigned_tasks": 1}

    task = (await client.get(f"/api/v1/tasks/{open_task['id']}", headers=auth(organizer))).json()
    assert task["assigned_to"] == str(organizer.id)
    assert task["description"].startswith("All racks\n\n[REASSIGNED:")

    gone = await client.get(f"/api/v1/workspaces/{ws}", headers=auth(volunteer))
    assert gone.status_code == 403


async def test_early_departure_of_inactive_member(client, organizer, volunteer, root_workspace):
    resp = await client.post(
        f"/api/v1/workspaces/{root_workspace['id']}/early-departure",
        json={"user_id": str(volunteer.id), "manager_id": str(organizer.id)},
        headers=auth(organizer),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "MEMBER_NOT_ACTIVE"


async def test_scheduled_dissolution_run(client, test_db, organizer, admin, participant):
    now = utc_now()
    past = await make_event(
        test_db, organizer, name="Old Meetup", landing_page_url="old-meetup",
        start_date=now - timedelta(days=41), end_date=now - timedelta(days=40),
        status=EventStatus.COMPLETED.value,
    )
    recent = await make_event(
        test_db, organizer, name="Recent Meetup", landing_page_url="recent-meetup",
        start_date=now - timedelta(days=3), end_date=now - timedelta(days=2),
        status=EventStatus.COMPLETED.value,
    )
    old_root = (await provision(client, organizer, past))["workspace"]["id"]
    recent_root = (await provision(client, organizer, recent))["workspace"]["id"]
    for ws in (old_root, recent_root):
        await client.post(f"/api/v1/workspaces/{ws}/wind-down", headers=auth(organizer))

    denied = await client.post(
        "/api/v1/workspaces/lifecycle/process-dissolutions", headers=auth(participant),
    )
    assert denied.status_code == 403

    run = await client.post(
        "/api/v1/workspaces/lifecycle/process-dissolutions", headers=auth(admin),
    )
    assert run.status_code == 200
    data = run.json()
    assert data["processed"] == 2
    assert data["dissolved"] == [old_root]
    assert data["failed"] == []

    still_there = await client.get(
        f"/api/v1/workspaces/{recent_root}/lifecycle", headers=auth(organizer),
    )
    assert still_there.json()["status"] == "WINDING_DOWN"
