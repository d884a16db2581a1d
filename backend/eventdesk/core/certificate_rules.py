"""Certificate Rules — certificate ids, AI design input validation, prompts, parsing.

Invariants:
    - certificate_id = CERT-<year>-<first 6 hex of event id, upper>-<8 hex upper>
    - Design text inputs are sanitized (control chars and brackets removed)
      BEFORE length checks, so limits apply to what reaches the model
    - Unknown certificate type/style or malformed colors never reach the model
    - parse_design_response raises ValueError on anything but a JSON object

Design Decisions:
    - Prompts built here (pure) so tests can assert their content without
      an Anthropic client
"""

import json
import re
import secrets
from datetime import datetime
from uuid import UUID


DESIGN_CERTIFICATE_TYPES = (
    "Completion", "Achievement", "Participation", "Excellence", "Appreciation",
)
DESIGN_STYLES = ("elegant", "modern", "corporate", "creative", "academic")
HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
DEFAULT_PRIMARY_COLOR = "#1a365d"
DEFAULT_SECONDARY_COLOR = "#c9a227"
MAX_THEME_LENGTH = 200
MAX_NOTES_LENGTH = 500
CANVAS_WIDTH, CANVAS_HEIGHT = 842, 595
PLACEHOLDERS = ("{recipient_name}", "{event_name}", "{issue_date}", "{certificate_id}")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BRACKETS = re.compile(r"[{}\[\]]")
_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def generate_certificate_id(event_id: UUID, now: datetime) -> str:
    short_event = event_id.hex[:6].upper()
    return f"CERT-{now.year}-{short_event}-{secrets.token_hex(4).upper()}"


def sanitize_text(value: str) -> str:
    return _BRACKETS.sub("", _CONTROL_CHARS.sub("", value)).strip()


def validate_design_input(
    event_theme: str,
    certificate_type: str | None,
    style: str | None,
    primary_color: str | None,
    secondary_color: str | None,
    additional_notes: str | None,
) -> tuple[dict | None, dict | None]:
    """Returns (error, sanitized). Exactly one of the pair is None."""
    theme = sanitize_text(event_theme or "")
    if not theme:
        return _field_error("event_theme", "Event theme cannot be empty"), None
    if len(theme) > MAX_THEME_LENGTH:
        return _field_error(
            "event_theme",
            f"Event theme must be less than {MAX_THEME_LENGTH} characters",
        ), None

    cert_type = certificate_type or "Completion"
    if cert_type not in DESIGN_CERTIFICATE_TYPES:
        return _field_error(
            "certificate_type",
            "Invalid certificate type. Must be one of: "
            + ", ".join(DESIGN_CERTIFICATE_TYPES),
        ), None

    chosen_style = style or "elegant"
    if chosen_style not in DESIGN_STYLES:
        return _field_error(
            "style", "Invalid style. Must be one of: " + ", ".join(DESIGN_STYLES),
        ), None

    primary = primary_color or DEFAULT_PRIMARY_COLOR
    secondary = secondary_color or DEFAULT_SECONDARY_COLOR
    for field_name, color in (("primary_color", primary), ("secondary_color", secondary)):
        if not HEX_COLOR.match(color):
            return _field_error(
                field_name, f"{field_name} must be a valid hex color (e.g., #1a365d)",
            ), None

    notes = sanitize_text(additional_notes) if additional_notes else ""
    if len(notes) > MAX_NOTES_LENGTH:
        return _field_error(
            "additional_notes",
            f"Additional notes must be less than {MAX_NOTES_LENGTH} characters",
        ), None

    return None, {
        "event_theme": theme,
        "certificate_type": cert_type,
        "style": chosen_style,
        "primary_color": primary,
        "secondary_color": secondary,
        "additional_notes": notes,
    }


def _field_error(field: str, message: str) -> dict:
    return {"error_code": "VALIDATION_ERROR", "field": field, "message": message}


def build_design_system_prompt() -> str:
    return (
        "You are a professional certificate designer. Generate Fabric.js canvas "
        "JSON for a certificate design.\n\n"
        f"The canvas dimensions are {CANVAS_WIDTH}x{CANVAS_HEIGHT} pixels "
        "(A4 landscape at 72 DPI).\n\n"
        "IMPORTANT: Return ONLY valid JSON, no markdown or explanation.\n\n"
        "Design guidelines:\n"
        "- Use elegant, professional typography\n"
        "- Include placeholder text elements using these exact keys: "
        + ", ".join(PLACEHOLDERS) + "\n"
        "- Title at top, recipient name prominently in center, event details "
        "below, certificate id and date at bottom\n"
        "- Use the specified colors for accents and text\n\n"
        'The object must include version "6.0.0" and an "objects" array. '
        'Text objects use type "i-text" with left, top, text, fontSize, '
        "fontFamily, fill, fontWeight, textAlign, originX, originY. "
        'Shapes use type "rect", "circle", or "line".'
    )


def build_design_user_prompt(design: dict) -> str:
    lines = [
        "Generate a certificate design with these specifications:",
        "",
        f"Event Theme: {design['event_theme']}",
        f"Certificate Type: {design['certificate_type']}",
        f"Primary Color: {design['primary_color']}",
        f"Secondary Color: {design['secondary_color']}",
        f"Style Preference: {design['style']}",
    ]
    if design.get("additional_notes"):
        lines.append(f"Additional Notes: {design['additional_notes']}")
    lines += [
        "",
        f'Include a decorative border, the title "Certificate of '
        f'{design["certificate_type"]}", and every placeholder.',
        "Return only the JSON object, no additional text.",
    ]
    return "\n".join(lines)


def parse_design_response(text: str) -> dict:
    """Strip optional markdown fences and parse the canvas JSON object."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned))
    canvas = json.loads(cleaned)
    if not isinstance(canvas, dict):
        raise ValueError("Design response is not a JSON object")
    return canvas
