"""Certificates — verifies issuance rules, distribution, and public verification."""

import re

from tests.services.factories import auth

CERT_ID = re.compile(r"^CERT-\d{4}-[0-9A-F]{6}-[0-9A-F]{8}$")


async def _issue(client, organizer, event, recipient, kind):
    return await client.post(
        f"/api/v1/events/{event.id}/certificates",
        json={"recipient_id": str(recipient.id), "type": kind},
        headers=auth(organizer),
    )


async def test_completion_requires_registration(client, organizer, participant, event):
    resp = await _issue(client, organizer, event, participant, "COMPLETION")
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "NOT_REGISTERED"

    await client.post(
        f"/api/v1/events/{event.id}/purchase",
        json={"attendees": [{"name": "Pat", "email": "pat@example.com"}]},
        headers=auth(participant),
    )
    assert (await _issue(
        client, organizer, event, participant, "COMPLETION",
    )).status_code == 201


async def test_issue_and_verify(client, organizer, volunteer, event):
    issued = await _issue(client, organizer, event, volunteer, "APPRECIATION")
    assert issued.status_code == 201
    cert = issued.json()
    assert CERT_ID.match(cert["certificate_id"])
    assert cert["certificate_id"][10:16] == event.id.hex[:6].upper()

    dup = await _issue(client, organizer, event, volunteer, "APPRECIATION")
    assert dup.status_code == 409
    assert dup.json()["error"]["code"] == "CERTIFICATE_EXISTS"

    # verification needs no identity
    verified = (await client.get(
        f"/api/v1/certificates/verify/{cert['certificate_id']}",
    )).json()
    assert verified["valid"] is True
    assert verified["recipient_name"] == "Vic Volunteer"
    assert verified["event_name"] == "Builders Summit"

    missing = await client.get("/api/v1/certificates/verify/CERT-2020-000000-00000000")
    assert missing.status_code == 404


async def test_mine_and_distribute(client, organizer, volunteer, event):
    cert = (await _issue(client, organizer, event, volunteer, "MERIT")).json()
    assert cert["distributed_at"] is None

    mine = (await client.get("/api/v1/certificates/mine", headers=auth(volunteer))).json()
    assert [c["id"] for c in mine] == [cert["id"]]

    sent = await client.post(
        f"/api/v1/certificates/{cert['id']}/distribute", headers=auth(organizer),
    )
    assert sent.json()["distributed_at"] is not None

    listed = (await client.get(
        f"/api/v1/events/{event.id}/certificates", headers=auth(organizer),
    )).json()
    assert len(listed) == 1


async def test_only_organizer_issues(client, volunteer, participant, event):
    resp = await _issue(client, volunteer, event, participant, "MERIT")
    assert resp.status_code == 403
