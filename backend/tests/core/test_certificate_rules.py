"""Certificate Rules — verifies ids, design input sanitizing, prompt and parsing.

Tests:
    - certificate_id format CERT-<year>-<EVENT6>-<HEX8>
    - Defaults applied; brackets and control chars stripped before length checks
    - Fenced JSON accepted, non-objects rejected
"""

import re
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from eventdesk.core.certificate_rules import (
    MAX_THEME_LENGTH, build_design_system_prompt, build_design_user_prompt,
    generate_certificate_id, parse_design_response, sanitize_text,
    validate_design_input,
)


def test_certificate_id_format():
    event_id = uuid4()
    cert_id = generate_certificate_id(event_id, datetime(2026, 9, 1, tzinfo=timezone.utc))
    assert re.fullmatch(r"CERT-2026-[0-9A-F]{6}-[0-9A-F]{8}", cert_id)
    assert cert_id.split("-")[2] == event_id.hex[:6].upper()


def test_sanitize_text():
    assert sanitize_text("  Tech {Summit}\x00 [2026] ") == "Tech Summit 2026"


def test_design_defaults():
    error, design = validate_design_input("AI Summit", None, None, None, None, None)
    assert error is None
    assert design == {
        "event_theme": "AI Summit",
        "certificate_type": "Completion",
        "style": "elegant",
        "primary_color": "#1a365d",
        "secondary_color": "#c9a227",
        "additional_notes": "",
    }


@pytest.mark.parametrize("args,field", [
    (("{}", None, None, None, None, None), "event_theme"),
    (("x" * (MAX_THEME_LENGTH + 1), None, None, None, None, None), "event_theme"),
    (("Theme", "Diploma", None, None, None, None), "certificate_type"),
    (("Theme", None, "gothic", None, None, None), "style"),
    (("Theme", None, None, "red", None, None), "primary_color"),
    (("Theme", None, None, None, "#12345", None), "secondary_color"),
    (("Theme", None, None, None, None, "n" * 501), "additional_notes"),
])
def test_design_rejections(args, field):
    error, design = validate_design_input(*args)
    assert design is None
    assert error["field"] == field


def test_prompts_mention_inputs():
    _, design = validate_design_input(
        "Robotics Cup", "Achievement", "modern", None, None, "gold seal",
    )
    user_prompt = build_design_user_prompt(design)
    assert "Event Theme: Robotics Cup" in user_prompt
    assert "Certificate of Achievement" in user_prompt
    assert "Additional Notes: gold seal" in user_prompt
    assert "{recipient_name}" in build_design_system_prompt()


def test_parse_fenced_json():
    canvas = parse_design_response('```json\n{"version": "6.0.0", "objects": []}\n```')
    assert canvas["objects"] == []


def test_parse_rejects_non_object():
    with pytest.raises(ValueError):
        parse_design_response("[1, 2]")
    with pytest.raises(ValueError):
        parse_design_response("not json")
