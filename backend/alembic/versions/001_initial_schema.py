"""Initial schema — users, events, workspaces, tasks, chat, ticketing, sponsors, certificates.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def _fk(name: str, target: str, nullable: bool = False, ondelete: str | None = None) -> sa.Column:
    return sa.Column(
        name, UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="PARTICIPANT"),
        _created_at(),
    )

    op.create_table(
        "events",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("mode", sa.String(10), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        _fk("organizer_id", "users.id"),
        sa.Column("visibility", sa.String(10), nullable=False, server_default="PUBLIC"),
        sa.Column("status", sa.String(12), nullable=False, server_default="DRAFT"),
        sa.Column("branding", sa.JSON, nullable=False),
        sa.Column("venue", sa.JSON, nullable=True),
        sa.Column("virtual_links", sa.JSON, nullable=True),
        sa.Column("landing_page_url", sa.String(100), nullable=False, unique=True),
        sa.Column("invite_link", sa.String(32), nullable=True, unique=True),
        sa.Column("leaderboard_enabled", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # ─── Workspaces ──────────────────────────────────────────────

    op.create_table(
        "workspaces",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("parent_workspace_id", "workspaces.id", nullable=True, ondelete="CASCADE"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("workspace_type", sa.String(12), nullable=False),
        sa.Column("status", sa.String(14), nullable=False, server_default="PROVISIONING"),
        sa.Column("settings", sa.JSON, nullable=False),
        _fk("created_by", "users.id"),
        sa.Column("dissolved_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_workspaces_event_id", "workspaces", ["event_id"])
    op.create_index("ix_workspaces_parent_workspace_id", "workspaces", ["parent_workspace_id"])

    op.create_table(
        "workspace_milestones",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(12), nullable=False, server_default="pending"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_workspace_milestones_workspace_id", "workspace_milestones", ["workspace_id"])

    op.create_table(
        "workspace_team_members",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        sa.Column("role", sa.String(24), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="ACTIVE"),
        sa.Column("permissions", sa.JSON, nullable=True),
        _fk("invited_by", "users.id", nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("workspace_id", "user_id", name="uq_team_member_workspace_user"),
    )
    op.create_index("ix_workspace_team_members_workspace_id", "workspace_team_members", ["workspace_id"])
    op.create_index("ix_workspace_team_members_user_id", "workspace_team_members", ["user_id"])

    # ─── Tasks ───────────────────────────────────────────────────

    op.create_table(
        "workspace_tasks",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="NOT_STARTED"),
        sa.Column("priority", sa.String(8), nullable=False, server_default="MEDIUM"),
        sa.Column("category", sa.String(14), nullable=False, server_default="SETUP"),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        _fk("assigned_to", "users.id", nullable=True),
        _fk("created_by", "users.id", nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_workspace_tasks_workspace_id", "workspace_tasks", ["workspace_id"])
    op.create_index("ix_workspace_tasks_assigned_to", "workspace_tasks", ["assigned_to"])

    op.create_table(
        "task_dependencies",
        _id(),
        _fk("task_id", "workspace_tasks.id", ondelete="CASCADE"),
        _fk("depends_on_id", "workspace_tasks.id", ondelete="CASCADE"),
        _created_at(),
        sa.UniqueConstraint("task_id", "depends_on_id", name="uq_task_dependency"),
    )

    op.create_table(
        "task_comments",
        _id(),
        _fk("task_id", "workspace_tasks.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        sa.Column("content", sa.Text, nullable=False),
        _created_at(),
    )
    op.create_index("ix_task_comments_task_id", "task_comments", ["task_id"])

    op.create_table(
        "task_activities",
        _id(),
        _fk("task_id", "workspace_tasks.id", ondelete="CASCADE"),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        _fk("user_id", "users.id", nullable=True),
        sa.Column("activity_type", sa.String(32), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        _created_at(),
    )
    op.create_index("ix_task_activities_task_id", "task_activities", ["task_id"])
    op.create_index("ix_task_activities_workspace_id", "task_activities", ["workspace_id"])

    # ─── Chat & notifications ────────────────────────────────────

    op.create_table(
        "workspace_channels",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(14), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default="false"),
        _fk("created_by", "users.id", nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("workspace_id", "name", name="uq_channel_workspace_name"),
    )
    op.create_index("ix_workspace_channels_workspace_id", "workspace_channels", ["workspace_id"])

    op.create_table(
        "channel_members",
        _id(),
        _fk("channel_id", "workspace_channels.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        sa.Column("last_read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),
    )

    op.create_table(
        "channel_messages",
        _id(),
        _fk("channel_id", "workspace_channels.id", ondelete="CASCADE"),
        _fk("sender_id", "users.id"),
        sa.Column("sender_name", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("message_type", sa.String(10), nullable=False, server_default="text"),
        _fk("reply_to_id", "channel_messages.id", nullable=True, ondelete="SET NULL"),
        sa.Column("attachments", sa.JSON, nullable=True),
        sa.Column("is_edited", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_channel_messages_channel_created", "channel_messages", ["channel_id", "created_at"],
    )

    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "workspace_broadcasts",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        _fk("sender_id", "users.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="normal"),
        sa.Column("include_children", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("delivery_stats", sa.JSON, nullable=False),
        _created_at(),
    )

    # ─── Ticketing ───────────────────────────────────────────────

    op.create_table(
        "ticket_tiers",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("quantity", sa.Integer, nullable=True),
        sa.Column("sold_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sale_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sale_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_ticket_tiers_event_id", "ticket_tiers", ["event_id"])

    op.create_table(
        "promo_codes",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        sa.Column("code", sa.String(40), nullable=False),
        sa.Column("discount_type", sa.String(10), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_uses", sa.Integer, nullable=True),
        sa.Column("used_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_quantity", sa.Integer, nullable=True),
        _fk("ticket_tier_id", "ticket_tiers.id", nullable=True, ondelete="CASCADE"),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _created_at(),
        sa.UniqueConstraint("event_id", "code", name="uq_promo_event_code"),
    )

    op.create_table(
        "registrations",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("user_id", "users.id", nullable=True),
        _fk("ticket_tier_id", "ticket_tiers.id", nullable=True),
        _fk("promo_code_id", "promo_codes.id", nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="PENDING"),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("attendees", sa.JSON, nullable=False),
        sa.Column("form_responses", sa.JSON, nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_user_id", "registrations", ["user_id"])

    op.create_table(
        "attendance_records",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("registration_id", "registrations.id", ondelete="CASCADE"),
        _fk("checked_in_by", "users.id"),
        sa.Column("check_in_method", sa.String(10), nullable=False, server_default="manual"),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("registration_id", name="uq_attendance_registration"),
    )

    op.create_table(
        "event_waitlist",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("ticket_tier_id", "ticket_tiers.id", nullable=True),
        _fk("user_id", "users.id", nullable=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="waiting"),
        sa.Column("promoted_at", sa.DateTime(timezone=True), nullable=True),
        _fk("registration_id", "registrations.id", nullable=True),
        _created_at(),
    )
    op.create_index("ix_event_waitlist_event_id", "event_waitlist", ["event_id"])

    # ─── Sponsors & certificates ─────────────────────────────────

    op.create_table(
        "workspace_sponsors",
        _id(),
        _fk("workspace_id", "workspaces.id", ondelete="CASCADE"),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("contact_name", sa.String(200), nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("tier", sa.String(10), nullable=False),
        sa.Column("committed_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("received_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(12), nullable=False, server_default="prospect"),
        sa.Column("notes", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_workspace_sponsors_workspace_id", "workspace_sponsors", ["workspace_id"])

    op.create_table(
        "certificates",
        _id(),
        sa.Column("certificate_id", sa.String(40), nullable=False, unique=True),
        _fk("recipient_id", "users.id"),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        sa.Column("type", sa.String(12), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        _fk("issued_by", "users.id"),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("distributed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("recipient_id", "event_id", "type", name="uq_certificate_kind"),
    )
    op.create_index("ix_certificates_recipient_id", "certificates", ["recipient_id"])
    op.create_index("ix_certificates_event_id", "certificates", ["event_id"])


def downgrade() -> None:
    for table in (
        "certificates", "workspace_sponsors", "event_waitlist", "attendance_records",
        "registrations", "promo_codes", "ticket_tiers", "workspace_broadcasts",
        "notifications", "channel_messages", "channel_members", "workspace_channels",
        "task_activities", "task_comments", "task_dependencies", "workspace_tasks",
        "workspace_team_members", "workspace_milestones", "workspaces", "events", "users",
    ):
        op.drop_table(table)
