"""Sponsors — verifies the pipeline CRUD, transitions, amounts, and summary."""

from decimal import Decimal

from tests.services.factories import add_member, auth


def _url(workspace_id, suffix="") -> str:
    return f"/api/v1/workspaces/{workspace_id}/sponsors{suffix}"


async def _sponsor(client, user, workspace_id, **fields) -> dict:
    body = {"company_name": "Acme Corp", "tier": "gold", "committed_amount": "5000", **fields}
    resp = await client.post(_url(workspace_id), json=body, headers=auth(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_and_list(client, organizer, volunteer, root_workspace):
    ws = root_workspace["id"]
    await add_member(client, organizer, ws, volunteer)
    sponsor = await _sponsor(client, organizer, ws)
    assert sponsor["status"] == "prospect"

    # members read, only managers write
    listed = (await client.get(_url(ws), headers=auth(volunteer))).json()
    assert [s["company_name"] for s in listed] == ["Acme Corp"]
    denied = await client.post(
        _url(ws), json={"company_name": "Nope", "tier": "bronze"}, headers=auth(volunteer),
    )
    assert denied.status_code == 403


async def test_status_transitions(client, organizer, root_workspace):
    ws = root_workspace["id"]
    sponsor = await _sponsor(client, organizer, ws)
    url = _url(ws, f"/{sponsor['id']}")

    ok = await client.patch(url, json={"status": "contacted"}, headers=auth(organizer))
    assert ok.json()["status"] == "contacted"

    skip = await client.patch(url, json={"status": "paid"}, headers=auth(organizer))
    assert skip.status_code == 409
    assert skip.json()["error"]["code"] == "INVALID_SPONSOR_TRANSITION"


async def test_received_cannot_exceed_committed(client, organizer, root_workspace):
    ws = root_workspace["id"]
    resp = await client.post(
        _url(ws),
        json={"company_name": "Over", "tier": "silver",
              "committed_amount": "100", "received_amount": "150"},
        headers=auth(organizer),
    )
    assert resp.status_code == 400

    sponsor = await _sponsor(client, organizer, ws)
    lowered = await client.patch(
        _url(ws, f"/{sponsor['id']}"),
        json={"received_amount": "2000", "committed_amount": "0"},
        headers=auth(organizer),
    )
    assert lowered.status_code == 400


async def test_summary_and_delete(client, organizer, root_workspace):
    ws = root_workspace["id"]
    acme = await _sponsor(client, organizer, ws, received_amount="1000")
    await _sponsor(client, organizer, ws, company_name="Globex", tier="silver",
                   committed_amount="2000")

    summary = (await client.get(_url(ws, "/summary"), headers=auth(organizer))).json()
    assert summary["total_sponsors"] == 2
    assert Decimal(summary["total_committed"]) == Decimal("7000")
    assert Decimal(summary["total_received"]) == Decimal("1000")
    assert summary["by_tier"]["gold"]["count"] == 1
    assert summary["by_status"]["prospect"]["count"] == 2

    gone = await client.delete(_url(ws, f"/{acme['id']}"), headers=auth(organizer))
    assert gone.status_code == 204
    assert len((await client.get(_url(ws), headers=auth(organizer))).json()) == 1
