"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Enum-valued columns store the enum's .value string

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so metadata is complete before create_all
      and alembic autogenerate run
"""

from eventdesk.models.user import User  # noqa: F401
from eventdesk.models.event import Event  # noqa: F401
from eventdesk.models.workspace import Workspace, WorkspaceMilestone  # noqa: F401
from eventdesk.models.team_member import TeamMember  # noqa: F401
from eventdesk.models.task import (  # noqa: F401
    WorkspaceTask, TaskDependency, TaskComment, TaskActivity,
)
from eventdesk.models.channel import (  # noqa: F401
    WorkspaceChannel, ChannelMember, ChannelMessage,
)
from eventdesk.models.notification import Notification  # noqa: F401
from eventdesk.models.broadcast import WorkspaceBroadcast  # noqa: F401
from eventdesk.models.ticket_tier import TicketTier  # noqa: F401
from eventdesk.models.promo_code import PromoCode  # noqa: F401
from eventdesk.models.registration import Registration, Attendance  # noqa: F401
from eventdesk.models.waitlist_entry import WaitlistEntry  # noqa: F401
from eventdesk.models.sponsor import Sponsor  # noqa: F401
from eventdesk.models.certificate import Certificate  # noqa: F401
