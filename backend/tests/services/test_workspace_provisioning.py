"""Workspace Provisioning — verifies ROOT creation, templates, and hierarchy.

Invariants:
    - One ROOT per event (409 ROOT_WORKSPACE_EXISTS)
    - ROOT ends ACTIVE with the organizer as WORKSPACE_OWNER and default channels
    - Templates create departments, committees, tasks, and milestones
    - Children follow ROOT → DEPARTMENT → COMMITTEE → TEAM
"""

from tests.services.factories import auth, provision


async def test_blank_provision(client, organizer, event):
    result = await provision(client, organizer, event, retention_period_days=7)
    root = result["workspace"]
    assert root["workspace_type"] == "ROOT"
    assert root["status"] == "ACTIVE"
    assert root["name"] == "Builders Summit Workspace"
    assert root["settings"]["retention_period_days"] == 7
    assert result["departments_created"] == 0
    assert result["tasks_created"] == 0

    detail = await client.get(f"/api/v1/workspaces/{root['id']}", headers=auth(organizer))
    assert detail.status_code == 200
    assert detail.json()["my_role"] == "WORKSPACE_OWNER"
    assert "MANAGE_WORKSPACE" in detail.json()["my_permissions"]

    channels = await client.get(
        f"/api/v1/workspaces/{root['id']}/channels", headers=auth(organizer),
    )
    assert [c["name"] for c in channels.json()] == ["announcements", "general", "tasks"]


async def test_second_root_conflicts(client, organizer, event):
    await provision(client, organizer, event)
    resp = await client.post(
        "/api/v1/workspaces", json={"event_id": str(event.id)}, headers=auth(organizer),
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "ROOT_WORKSPACE_EXISTS"


async def test_only_organizer_provisions(client, participant, event):
    resp = await client.post(
        "/api/v1/workspaces", json={"event_id": str(event.id)}, headers=auth(participant),
    )
    assert resp.status_code == 403


async def test_conference_template(client, organizer, event):
    result = await provision(client, organizer, event, template="conference")
    assert result["departments_created"] == 3
    assert result["committees_created"] == 7
    assert result["tasks_created"] == 12
    assert result["milestones_created"] == 4
    root_id = result["workspace"]["id"]

    departments = (await client.get(
        f"/api/v1/workspaces/{root_id}/children", headers=auth(organizer),
    )).json()
    assert sorted(d["name"] for d in departments) == ["Content", "Growth", "Operations"]
    assert {d["workspace_type"] for d in departments} == {"DEPARTMENT"}

    milestones = (await client.get(
        f"/api/v1/workspaces/{root_id}/milestones", headers=auth(organizer),
    )).json()
    assert [m["sort_order"] for m in milestones] == [0, 1, 2, 3]

    root_tasks = (await client.get(
        f"/api/v1/workspaces/{root_id}/tasks", headers=auth(organizer),
    )).json()
    assert len(root_tasks) == 2

    mine = (await client.get("/api/v1/workspaces/mine", headers=auth(organizer))).json()
    assert len(mine) == 1 + 3 + 7


async def test_department_roles_follow_template(client, organizer, event):
    result = await provision(client, organizer, event, template="hackathon")
    departments = (await client.get(
        f"/api/v1/workspaces/{result['workspace']['id']}/children", headers=auth(organizer),
    )).json()
    tech = next(d for d in departments if d["name"] == "Tech")
    detail = (await client.get(
        f"/api/v1/workspaces/{tech['id']}", headers=auth(organizer),
    )).json()
    assert detail["my_role"] == "TECHNICAL_SPECIALIST"


async def test_child_hierarchy_rules(client, organizer, root_workspace):
    root_id = root_workspace["id"]
    bad = await client.post(
        f"/api/v1/workspaces/{root_id}/children",
        json={"name": "Ops", "workspace_type": "COMMITTEE"},
        headers=auth(organizer),
    )
    assert bad.status_code == 422
    assert bad.json()["error"]["code"] == "INVALID_CHILD_TYPE"

    ids = [root_id]
    for level in ("DEPARTMENT", "COMMITTEE", "TEAM"):
        resp = await client.post(
            f"/api/v1/workspaces/{ids[-1]}/children",
            json={"name": level.title(), "workspace_type": level},
            headers=auth(organizer),
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["parent_workspace_id"] == ids[-1]
        ids.append(resp.json()["id"])

    too_deep = await client.post(
        f"/api/v1/workspaces/{ids[-1]}/children",
        json={"name": "Sub", "workspace_type": "TEAM"},
        headers=auth(organizer),
    )
    assert too_deep.json()["error"]["code"] == "HIERARCHY_DEPTH_EXCEEDED"


async def test_update_merges_settings(client, organizer, root_workspace):
    resp = await client.patch(
        f"/api/v1/workspaces/{root_workspace['id']}",
        json={"settings": {"allow_external_members": True}},
        headers=auth(organizer),
    )
    settings = resp.json()["settings"]
    assert settings["allow_external_members"] is True
    assert settings["retention_period_days"] == 30
