"""API Dependencies — caller identity and shared clients for route handlers.

Invariants:
    - Identity comes from the X-User-Id header and must name an existing user
    - Missing, malformed, or unknown identity on a protected route is 401
    - get_optional_user never raises for an absent header (public routes)

Design Decisions:
    - Header identity over sessions/JWT: authentication lives in front of this
      service (gateway); routes only need a resolved User
    - Anthropic client built once per process (lru_cache) from settings
"""

import logging
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import get_settings
from eventdesk.core.errors import AuthenticationRequiredError
from eventdesk.infrastructure.anthropic_client import ResilientAnthropicClient
from eventdesk.infrastructure.database import get_db
from eventdesk.models.user import User

logger = logging.getLogger(__name__)


def _parse_user_id(raw: str | None) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None


async def get_current_user(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    user_id = _parse_user_id(x_user_id)
    if user_id is None:
        raise AuthenticationRequiredError()
    user = await db.get(User, user_id)
    if user is None:
        logger.info("Unknown user id on request", extra={"user_id": user_id})
        raise AuthenticationRequiredError("Unknown user")
    return user


async def get_optional_user(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    user_id = _parse_user_id(x_user_id)
    if user_id is None:
        return None
    return await db.get(User, user_id)


@lru_cache
def get_anthropic_client() -> ResilientAnthropicClient:
    settings = get_settings()
    return ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        max_retries=settings.anthropic_max_retries,
        base_delay_ms=settings.anthropic_base_delay_ms,
        max_delay_ms=settings.anthropic_max_delay_ms,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )
