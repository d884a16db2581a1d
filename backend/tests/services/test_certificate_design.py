"""Certificate design — verifies the AI layout endpoint against a mocked model.

Invariants:
    - Inputs are sanitized before the prompt is built
    - Fenced JSON is accepted; anything else is a 502
    - The per-user window allows 5 calls, the 6th is 429 with Retry-After
"""

from tests.services.factories import add_member, auth
from tests.services.mock_anthropic import canvas_response, text_response

URL = "/api/v1/certificates/design"


def _body(workspace, **fields) -> dict:
    return {"workspace_id": workspace["id"], "event_theme": "Robotics League", **fields}


async def test_generates_canvas(client, mock_anthropic, organizer, root_workspace):
    resp = await client.post(
        URL,
        json=_body(root_workspace, event_theme="Robotics {League}", style="modern"),
        headers=auth(organizer),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["canvas_json"]["version"] == "6.0.0"

    call = mock_anthropic.calls[0]
    assert call["model"] == "claude-sonnet-4-5"
    prompt = call["messages"][0]["content"]
    assert "Event Theme: Robotics League" in prompt
    assert "Style Preference: modern" in prompt
    assert "Primary Color: #1a365d" in prompt


async def test_fenced_json_accepted(client, mock_anthropic, organizer, root_workspace):
    mock_anthropic.responses = [canvas_response(fenced=True)]
    resp = await client.post(URL, json=_body(root_workspace), headers=auth(organizer))
    assert resp.status_code == 200
    assert resp.json()["canvas_json"]["objects"][0]["type"] == "i-text"


async def test_unparseable_output(client, mock_anthropic, organizer, root_workspace):
    mock_anthropic.responses = [text_response("Here is a lovely certificate!")]
    resp = await client.post(URL, json=_body(root_workspace), headers=auth(organizer))
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "DESIGN_GENERATION_FAILED"


async def test_invalid_color_never_reaches_model(
    client, mock_anthropic, organizer, root_workspace,
):
    resp = await client.post(
        URL, json=_body(root_workspace, primary_color="navy"), headers=auth(organizer),
    )
    assert resp.status_code == 400
    assert mock_anthropic.calls == []


async def test_requires_workspace_manager(
    client, mock_anthropic, organizer, volunteer, participant, root_workspace,
):
    outsider = await client.post(URL, json=_body(root_workspace), headers=auth(participant))
    assert outsider.status_code == 403

    await add_member(client, organizer, root_workspace["id"], volunteer)
    member = await client.post(URL, json=_body(root_workspace), headers=auth(volunteer))
    assert member.status_code == 403
    assert mock_anthropic.calls == []


async def test_rate_limited_after_five(client, mock_anthropic, organizer, root_workspace):
    for _ in range(5):
        ok = await client.post(URL, json=_body(root_workspace), headers=auth(organizer))
        assert ok.status_code == 200

    limited = await client.post(URL, json=_body(root_workspace), headers=auth(organizer))
    assert limited.status_code == 429
    assert limited.json()["error"]["code"] == "RATE_LIMITED"
    assert 1 <= int(limited.headers["Retry-After"]) <= 60
    assert len(mock_anthropic.calls) == 5
