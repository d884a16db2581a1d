"""TeamMember ORM — a user's membership in one workspace.

Invariants:
    - (workspace_id, user_id) is unique; rejoining reactivates the same row
    - permissions None means "role defaults" (DEFAULT_PERMISSIONS);
      a list overrides them entirely
    - left_at is set when status becomes INACTIVE
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from eventdesk.core.domain_types import MemberStatus
from eventdesk.db.base import Base, utcnow


class TeamMember(Base):
    __tablename__ = "workspace_team_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_team_member_workspace_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(String(24), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=MemberStatus.ACTIVE.value,
    )
    permissions: Mapped[list | None] = mapped_column(JSON, nullable=True)
    invited_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    left_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
