"""Guards — shared lookups, membership/permission checks, and rule-error raising.

Invariants:
    - Missing rows raise ResourceNotFoundError (404), never return None
    - Non-members and members without the permission raise PermissionDeniedError (403)
    - Only ACTIVE memberships grant anything
    - Rule descriptors from core/ become exceptions here and nowhere else

Design Decisions:
    - Module functions over a class: every service needs them with the same
      AsyncSession, so they take db explicitly
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.domain_types import MemberStatus, Permission, WorkspaceRole
from eventdesk.core.errors import (
    BusinessRuleError, ConflictError, ErrorContext, PermissionDeniedError,
    ResourceNotFoundError, ValidationFailedError,
)
from eventdesk.core.workspace_rules import has_any_permission
from eventdesk.models.event import Event
from eventdesk.models.team_member import TeamMember
from eventdesk.models.user import User
from eventdesk.models.workspace import Workspace

logger = logging.getLogger(__name__)


# ─── Lookups ─────────────────────────────────────────────────────

async def get_or_404(db: AsyncSession, model, row_id: UUID, label: str | None = None):
    row = await db.get(model, row_id)
    if row is None:
        raise ResourceNotFoundError(label or model.__name__, str(row_id))
    return row


async def get_event_or_404(db: AsyncSession, event_id: UUID) -> Event:
    return await get_or_404(db, Event, event_id, "Event")


async def get_workspace_or_404(db: AsyncSession, workspace_id: UUID) -> Workspace:
    return await get_or_404(db, Workspace, workspace_id, "Workspace")


async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    return await get_or_404(db, User, user_id, "User")


async def get_membership(
    db: AsyncSession, workspace_id: UUID, user_id: UUID,
) -> TeamMember | None:
    result = await db.execute(
        select(TeamMember).where(
            TeamMember.workspace_id == workspace_id,
            TeamMember.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


# ─── Access checks ───────────────────────────────────────────────

def require_organizer(event: Event, user: User) -> None:
    if event.organizer_id != user.id:
        raise PermissionDeniedError(
            "Only the event organizer can perform this action",
            ErrorContext(event_id=str(event.id), user_id=str(user.id)),
        )


async def require_member(
    db: AsyncSession, workspace_id: UUID, user: User,
) -> TeamMember:
    member = await get_membership(db, workspace_id, user.id)
    if member is None or member.status != MemberStatus.ACTIVE.value:
        raise PermissionDeniedError(
            "You are not an active member of this workspace",
            ErrorContext(workspace_id=str(workspace_id), user_id=str(user.id)),
        )
    return member


async def require_permission(
    db: AsyncSession, workspace_id: UUID, user: User, *permissions: Permission,
) -> TeamMember:
    """Active membership holding at least one of the given permissions."""
    member = await require_member(db, workspace_id, user)
    if not member_has(member, *permissions):
        names = " or ".join(p.value for p in permissions)
        logger.info(
            f"Permission denied: {names}",
            extra={"workspace_id": workspace_id, "user_id": user.id},
        )
        raise PermissionDeniedError(
            f"Requires {names} permission",
            ErrorContext(workspace_id=str(workspace_id), user_id=str(user.id)),
        )
    return member


def member_has(member: TeamMember, *permissions: Permission) -> bool:
    return has_any_permission(
        WorkspaceRole(member.role), member.permissions, *permissions,
    )


# ─── Rule descriptors → exceptions ───────────────────────────────

def raise_validation(error: dict | None) -> None:
    if error:
        raise ValidationFailedError(error["message"], error.get("field", ""))


def raise_business(error: dict | None) -> None:
    if error:
        raise BusinessRuleError(error["message"], error["error_code"])


def raise_conflict(error: dict | None) -> None:
    if error:
        raise ConflictError(error["message"], error["error_code"])
