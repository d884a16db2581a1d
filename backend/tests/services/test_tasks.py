"""Tasks — verifies CRUD permissions, progress coherence, dependencies, history.

Invariants:
    - Creating needs CREATE_TASKS or MANAGE_TASKS; assignees must be active members
    - COMPLETED forces progress 100; 100 without COMPLETED is rejected
    - Volunteers only move their own tasks
    - IN_PROGRESS/COMPLETED wait on every dependency being COMPLETED
    - Cycles and self-dependencies are 422, duplicates 409
"""

from tests.services.factories import add_member, auth, create_task


async def _progress(client, user, task_id, **body):
    return await client.post(f"/api/v1/tasks/{task_id}/progress", json=body, headers=auth(user))


async def test_create_and_filter(client, organizer, root_workspace):
    ws = root_workspace["id"]
    await create_task(client, organizer, ws, title="Book venue", category="LOGISTICS")
    await create_task(client, organizer, ws, title="Design badges", category="MARKETING")

    resp = await client.get(
        f"/api/v1/workspaces/{ws}/tasks", params={"category": "LOGISTICS"},
        headers=auth(organizer),
    )
    titles = [t["title"] for t in resp.json()]
    assert titles == ["Book venue"]


async def test_volunteer_cannot_create(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    resp = await client.post(
        f"/api/v1/workspaces/{ws}/tasks", json={"title": "Sneaky"}, headers=auth(volunteer),
    )
    assert resp.status_code == 403


async def test_assignee_must_be_member(client, organizer, participant, root_workspace):
    resp = await client.post(
        f"/api/v1/workspaces/{root_workspace['id']}/tasks",
        json={"title": "Call caterer", "assigned_to": str(participant.id)},
        headers=auth(organizer),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "ASSIGNEE_NOT_MEMBER"


async def test_assignment_notifies(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    task = await create_task(client, organizer, ws)
    resp = await client.post(
        f"/api/v1/tasks/{task['id']}/assign",
        json={"assigned_to": str(volunteer.id)}, headers=auth(organizer),
    )
    assert resp.json()["assigned_to"] == str(volunteer.id)

    inbox = (await client.get("/api/v1/notifications", headers=auth(volunteer))).json()
    assert inbox[0]["type"] == "task_assigned"
    assert "Olivia Organizer assigned you: Book venue" == inbox[0]["message"]


async def test_progress_rules(client, organizer, root_workspace):
    task = await create_task(client, organizer, root_workspace["id"])

    started = await _progress(client, organizer, task["id"], status="IN_PROGRESS", progress=40)
    assert started.json()["progress"] == 40

    full = await _progress(client, organizer, task["id"], progress=100)
    assert full.status_code == 400

    done = await _progress(client, organizer, task["id"], status="COMPLETED")
    assert done.json()["status"] == "COMPLETED"
    assert done.json()["progress"] == 100
    assert done.json()["completed_at"] is not None

    reopened = await _progress(client, organizer, task["id"], status="IN_PROGRESS", progress=90)
    assert reopened.json()["completed_at"] is None


async def test_reopen_with_status_only(client, organizer, root_workspace):
    task = await create_task(client, organizer, root_workspace["id"])
    await _progress(client, organizer, task["id"], status="COMPLETED")

    reopened = await _progress(client, organizer, task["id"], status="IN_PROGRESS")
    assert reopened.status_code == 200
    assert reopened.json()["status"] == "IN_PROGRESS"
    assert reopened.json()["progress"] == 99
    assert reopened.json()["completed_at"] is None


async def test_volunteer_updates_only_own_task(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    mine = await create_task(client, organizer, ws, assigned_to=str(volunteer.id))
    theirs = await create_task(client, organizer, ws, title="Not yours")

    assert (await _progress(client, volunteer, mine["id"], progress=10)).status_code == 200
    assert (await _progress(client, volunteer, theirs["id"], progress=10)).status_code == 403


async def test_dependencies_gate_progress(client, organizer, root_workspace):
    ws = root_workspace["id"]
    setup = await create_task(client, organizer, ws, title="Set up stage")
    rehearse = await create_task(client, organizer, ws, title="Rehearse")

    link = await client.post(
        f"/api/v1/tasks/{rehearse['id']}/dependencies",
        json={"depends_on_id": setup["id"]}, headers=auth(organizer),
    )
    assert link.status_code == 201

    blocked = await _progress(client, organizer, rehearse["id"], status="IN_PROGRESS")
    assert blocked.status_code == 422
    assert blocked.json()["error"]["code"] == "DEPENDENCIES_INCOMPLETE"

    # BLOCKED is never gated
    assert (await _progress(client, organizer, rehearse["id"], status="BLOCKED")).status_code == 200

    await _progress(client, organizer, setup["id"], status="COMPLETED")
    assert (await _progress(
        client, organizer, rehearse["id"], status="IN_PROGRESS",
    )).status_code == 200


async def test_dependency_errors(client, organizer, root_workspace):
    ws = root_workspace["id"]
    a = await create_task(client, organizer, ws, title="A")
    b = await create_task(client, organizer, ws, title="B")

    async def link(task, dep):
        return await client.post(
            f"/api/v1/tasks/{task['id']}/dependencies",
            json={"depends_on_id": dep["id"]}, headers=auth(organizer),
        )

    assert (await link(a, a)).json()["error"]["code"] == "SELF_DEPENDENCY"
    assert (await link(a, b)).status_code == 201
    assert (await link(a, b)).status_code == 409
    cycle = await link(b, a)
    assert cycle.status_code == 422
    assert cycle.json()["error"]["code"] == "DEPENDENCY_CYCLE"

    deps = (await client.get(
        f"/api/v1/tasks/{a['id']}/dependencies", headers=auth(organizer),
    )).json()
    assert [d["depends_on_id"] for d in deps] == [b["id"]]

    removed = await client.delete(
        f"/api/v1/tasks/{a['id']}/dependencies/{b['id']}", headers=auth(organizer),
    )
    assert removed.status_code == 204
    missing = await client.delete(
        f"/api/v1/tasks/{a['id']}/dependencies/{b['id']}", headers=auth(organizer),
    )
    assert missing.status_code == 404


async def test_cross_workspace_dependency(client, organizer, root_workspace):
    ws = root_workspace["id"]
    dept = (await client.post(
        f"/api/v1/workspaces/{ws}/children",
        json={"name": "Ops", "workspace_type": "DEPARTMENT"}, headers=auth(organizer),
    )).json()
    here = await create_task(client, organizer, ws, title="Here")
    there = await create_task(client, organizer, dept["id"], title="There")
    resp = await client.post(
        f"/api/v1/tasks/{here['id']}/dependencies",
        json={"depends_on_id": there["id"]}, headers=auth(organizer),
    )
    assert resp.json()["error"]["code"] == "CROSS_WORKSPACE_DEPENDENCY"


async def test_comments_and_history(client, organizer, root_workspace):
    task = await create_task(client, organizer, root_workspace["id"])
    comment = await client.post(
        f"/api/v1/tasks/{task['id']}/comments",
        json={"content": "  Venue confirmed  "}, headers=auth(organizer),
    )
    assert comment.status_code == 201
    assert comment.json()["content"] == "Venue confirmed"

    await client.patch(
        f"/api/v1/tasks/{task['id']}", json={"priority": "URGENT"}, headers=auth(organizer),
    )
    history = (await client.get(
        f"/api/v1/tasks/{task['id']}/history", headers=auth(organizer),
    )).json()
    kinds = {h["activity_type"] for h in history}
    assert {"created", "updated", "commented"} <= kinds


async def test_delete_task(client, organizer, root_workspace):
    task = await create_task(client, organizer, root_workspace["id"])
    assert (await client.delete(
        f"/api/v1/tasks/{task['id']}", headers=auth(organizer),
    )).status_code == 204
    assert (await client.get(
        f"/api/v1/tasks/{task['id']}", headers=auth(organizer),
    )).status_code == 404
