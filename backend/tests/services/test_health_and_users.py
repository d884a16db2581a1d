"""Health & Users — verifies probes, account creation, and header identity.

Invariants:
    - Liveness never touches the database; readiness does
    - Duplicate emails are 409 EMAIL_TAKEN
    - Protected routes need a known X-User-Id (401 otherwise)
"""

from uuid import uuid4

from tests.services.factories import auth


async def test_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "eventdesk-api"


async def test_readiness_uses_database(client):
    resp = await client.get("/api/v1/health/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"]["database"] == "healthy"


async def test_create_user_normalizes_email(client):
    resp = await client.post(
        "/api/v1/users", json={"email": "New.Person@Example.com", "full_name": "New Person"},
    )
    assert resp.status_code == 201
    assert resp.json()["email"] == "new.person@example.com"
    assert resp.json()["role"] == "PARTICIPANT"


async def test_duplicate_email_conflicts(client, participant):
    resp = await client.post(
        "/api/v1/users", json={"email": "PAT@example.com", "full_name": "Other Pat"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "EMAIL_TAKEN"


async def test_invalid_body_is_400(client):
    resp = await client.post("/api/v1/users", json={"email": "nope", "full_name": "X"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_me_resolves_header(client, participant):
    resp = await client.get("/api/v1/users/me", headers=auth(participant))
    assert resp.status_code == 200
    assert resp.json()["id"] == str(participant.id)


async def test_missing_or_unknown_identity_is_401(client):
    assert (await client.get("/api/v1/users/me")).status_code == 401
    resp = await client.get("/api/v1/users/me", headers={"X-User-Id": str(uuid4())})
    assert resp.status_code == 401
    resp = await client.get("/api/v1/users/me", headers={"X-User-Id": "not-a-uuid"})
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"
