"""Certificate Design Service — AI-generated Fabric.js certificate layouts.

Invariants:
    - Per-user fixed-window rate limit is checked before anything else
    - Caller needs MANAGE_WORKSPACE on the workspace the design is for
    - Inputs are sanitized and validated before any prompt is built
    - Unparseable model output becomes DesignGenerationError (502), never a 500

Design Decisions:
    - Rate limiter is a module singleton built lazily from settings, so one
      process shares one window store (reset_rate_limiter() for tests)
    - Anthropic client injected through the constructor: routes pass the
      app-wide ResilientAnthropicClient, tests pass a mock
"""

import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import get_settings
from eventdesk.core.certificate_rules import (
    build_design_system_prompt, build_design_user_prompt, parse_design_response,
    validate_design_input,
)
from eventdesk.core.domain_types import Permission
from eventdesk.core.errors import DesignGenerationError, ErrorContext, RateLimitedError
from eventdesk.core.rate_limit import FixedWindowRateLimiter
from eventdesk.infrastructure.anthropic_client import (
    ResilientAnthropicClient, response_text,
)
from eventdesk.models.user import User
from eventdesk.schemas.certificate import DesignRequest
from eventdesk.services.guards import (
    get_workspace_or_404, raise_validation, require_permission,
)

logger = logging.getLogger(__name__)

_rate_limiter: FixedWindowRateLimiter | None = None


def get_rate_limiter() -> FixedWindowRateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        _rate_limiter = FixedWindowRateLimiter(
            settings.certificate_design_rate_limit,
            settings.certificate_design_rate_window_seconds,
        )
    return _rate_limiter


def reset_rate_limiter() -> None:
    global _rate_limiter
    _rate_limiter = None


class CertificateDesignService:

    def __init__(self, db: AsyncSession, client: ResilientAnthropicClient):
        self.db = db
        self.client = client

    async def generate(self, body: DesignRequest, user: User) -> dict:
        context = ErrorContext(workspace_id=str(body.workspace_id), user_id=str(user.id))
        decision = get_rate_limiter().check(str(user.id))
        if not decision.allowed:
            logger.warning(
                "Certificate design rate limit hit",
                extra={"user_id": user.id},
            )
            raise RateLimitedError(decision.retry_after_ms, context)

        await get_workspace_or_404(self.db, body.workspace_id)
        await require_permission(self.db, body.workspace_id, user, Permission.MANAGE_WORKSPACE)

        error, design = validate_design_input(
            body.event_theme,
            body.certificate_type,
            body.style,
            body.primary_color,
            body.secondary_color,
            body.additional_notes,
        )
        raise_validation(error)

        settings = get_settings()
        response = await self.client.create_message(
            model=settings.design_model,
            max_tokens=settings.design_max_tokens,
            system=build_design_system_prompt(),
            messages=[{"role": "user", "content": build_design_user_prompt(design)}],
            context=context,
        )
        text = response_text(response)
        if not text:
            raise DesignGenerationError("No design returned by the model", context)
        try:
            canvas = parse_design_response(text)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Unparseable design response: {e}", extra={"user_id": user.id})
            raise DesignGenerationError("Failed to parse the generated design", context)

        logger.info(
            f"Certificate design generated ({design['style']})",
            extra={"workspace_id": body.workspace_id, "user_id": user.id},
        )
        return {"canvas_json": canvas}
