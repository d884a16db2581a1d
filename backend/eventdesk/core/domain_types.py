"""Domain Types — enums and identity types shared across the codebase.

Invariants:
    - EventId, WorkspaceId, TaskId, UserId wrap UUIDs
    - Every persisted status/role/category is a str Enum, no raw string matching
    - Enum values equal the strings stored in the database

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
EventId = NewType("EventId", UUID)
WorkspaceId = NewType("WorkspaceId", UUID)
TaskId = NewType("TaskId", UUID)


# ─── Users & Events ──────────────────────────────────────────────

class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ORGANIZER = "ORGANIZER"
    PARTICIPANT = "PARTICIPANT"
    JUDGE = "JUDGE"
    VOLUNTEER = "VOLUNTEER"
    SPEAKER = "SPEAKER"


class EventMode(str, Enum):
    OFFLINE = "OFFLINE"
    ONLINE = "ONLINE"
    HYBRID = "HYBRID"


class EventStatus(str, Enum):
    """Event lifecycle, maps to DB `status` column."""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class EventVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    UNLISTED = "UNLISTED"


# ─── Workspaces ──────────────────────────────────────────────────

class WorkspaceType(str, Enum):
    """Hierarchy level. ROOT is unique per event."""
    ROOT = "ROOT"
    DEPARTMENT = "DEPARTMENT"
    COMMITTEE = "COMMITTEE"
    TEAM = "TEAM"


class WorkspaceStatus(str, Enum):
    PROVISIONING = "PROVISIONING"
    ACTIVE = "ACTIVE"
    WINDING_DOWN = "WINDING_DOWN"
    DISSOLVED = "DISSOLVED"


class WorkspaceRole(str, Enum):
    WORKSPACE_OWNER = "WORKSPACE_OWNER"
    TEAM_LEAD = "TEAM_LEAD"
    EVENT_COORDINATOR = "EVENT_COORDINATOR"
    VOLUNTEER_MANAGER = "VOLUNTEER_MANAGER"
    TECHNICAL_SPECIALIST = "TECHNICAL_SPECIALIST"
    MARKETING_LEAD = "MARKETING_LEAD"
    GENERAL_VOLUNTEER = "GENERAL_VOLUNTEER"


class MemberStatus(str, Enum):
    INVITED = "INVITED"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Permission(str, Enum):
    """Workspace permissions held by team members."""
    MANAGE_WORKSPACE = "MANAGE_WORKSPACE"
    MANAGE_TEAM = "MANAGE_TEAM"
    MANAGE_TASKS = "MANAGE_TASKS"
    MANAGE_CHANNELS = "MANAGE_CHANNELS"
    MANAGE_PERMISSIONS = "MANAGE_PERMISSIONS"
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    INVITE_MEMBERS = "INVITE_MEMBERS"
    CREATE_TASKS = "CREATE_TASKS"
    VIEW_TASKS = "VIEW_TASKS"
    UPDATE_TASK_PROGRESS = "UPDATE_TASK_PROGRESS"


class ChannelType(str, Enum):
    GENERAL = "GENERAL"
    TASK_SPECIFIC = "TASK_SPECIFIC"
    ROLE_BASED = "ROLE_BASED"
    ANNOUNCEMENT = "ANNOUNCEMENT"


# ─── Tasks ───────────────────────────────────────────────────────

class TaskStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskCategory(str, Enum):
    SETUP = "SETUP"
    MARKETING = "MARKETING"
    LOGISTICS = "LOGISTICS"
    TECHNICAL = "TECHNICAL"
    REGISTRATION = "REGISTRATION"
    POST_EVENT = "POST_EVENT"


# ─── Ticketing ───────────────────────────────────────────────────

class RegistrationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"


class TierSaleStatus(str, Enum):
    """Derived, never stored."""
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    ON_SALE = "on_sale"
    SOLD_OUT = "sold_out"
    ENDED = "ended"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class WaitlistStatus(str, Enum):
    WAITING = "waiting"
    PROMOTED = "promoted"
    REMOVED = "removed"


# ─── Sponsors, Certificates, Notifications ───────────────────────

class SponsorStatus(str, Enum):
    PROSPECT = "prospect"
    CONTACTED = "contacted"
    NEGOTIATING = "negotiating"
    COMMITTED = "committed"
    PAID = "paid"
    DECLINED = "declined"


class SponsorTier(str, Enum):
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    PARTNER = "partner"


class CertificateType(str, Enum):
    MERIT = "MERIT"
    COMPLETION = "COMPLETION"
    APPRECIATION = "APPRECIATION"


class NotificationType(str, Enum):
    MENTION = "mention"
    BROADCAST = "broadcast"
    WIND_DOWN = "wind_down"
    TASK_ASSIGNED = "task_assigned"


class BroadcastPriority(str, Enum):
    NORMAL = "normal"
    IMPORTANT = "important"
    URGENT = "urgent"
