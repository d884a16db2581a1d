"""Workspace Templates — static structures used when provisioning a ROOT workspace.

Invariants:
    - Template ids are lowercase: "conference", "hackathon", "blank"
    - Each task targets either the ROOT workspace or the COMMITTEE level
    - Committee-level tasks are later split over committees in declaration order
    - "blank" creates no departments, committees, tasks, or milestones
"""

from dataclasses import dataclass, field

from eventdesk.core.domain_types import TaskCategory, TaskPriority, WorkspaceRole


@dataclass(frozen=True)
class TemplateTask:
    title: str
    description: str
    category: TaskCategory
    priority: TaskPriority
    target_level: str = "COMMITTEE"


@dataclass(frozen=True)
class TemplateDepartment:
    name: str
    manager_role: WorkspaceRole
    committees: tuple[str, ...]


@dataclass(frozen=True)
class WorkspaceTemplate:
    id: str
    name: str
    departments: tuple[TemplateDepartment, ...] = ()
    tasks: tuple[TemplateTask, ...] = ()
    milestones: tuple[tuple[str, str], ...] = ()
    settings: dict = field(default_factory=dict)


_S, _M, _L = TaskCategory.SETUP, TaskCategory.MARKETING, TaskCategory.LOGISTICS
_T, _R, _P = TaskCategory.TECHNICAL, TaskCategory.REGISTRATION, TaskCategory.POST_EVENT
_URGENT, _HIGH, _MEDIUM = TaskPriority.URGENT, TaskPriority.HIGH, TaskPriority.MEDIUM


CONFERENCE = WorkspaceTemplate(
    id="conference",
    name="Corporate Conference",
    departments=(
        TemplateDepartment(
            "Operations", WorkspaceRole.EVENT_COORDINATOR,
            ("Logistics", "Catering", "Registration Desk"),
        ),
        TemplateDepartment(
            "Growth", WorkspaceRole.MARKETING_LEAD,
            ("Marketing", "Sponsorship"),
        ),
        TemplateDepartment(
            "Content", WorkspaceRole.TEAM_LEAD,
            ("Speakers", "Technical"),
        ),
    ),
    tasks=(
        TemplateTask("Define conference theme and objectives",
                     "Establish the main theme, learning objectives, and target outcomes",
                     _S, _URGENT, "ROOT"),
        TemplateTask("Create budget and financial plan",
                     "Develop a budget covering venue, speakers, catering, marketing",
                     _S, _URGENT, "ROOT"),
        TemplateTask("Select and book venue",
                     "Research, visit, and secure the conference venue", _L, _URGENT),
        TemplateTask("Arrange catering and refreshments",
                     "Plan meals, coffee breaks, and dietary accommodations", _L, _MEDIUM),
        TemplateTask("Set up registration platform",
                     "Configure online registration with ticket types and pricing", _R, _HIGH),
        TemplateTask("Manage registration desk",
                     "Handle attendee check-in and badge distribution", _R, _URGENT),
        TemplateTask("Launch marketing campaign",
                     "Execute multi-channel marketing strategy", _M, _HIGH),
        TemplateTask("Secure sponsors",
                     "Reach out to companies for sponsorship packages", _M, _HIGH),
        TemplateTask("Identify and invite keynote speakers",
                     "Research and reach out to potential keynote speakers", _S, _HIGH),
        TemplateTask("Prepare speaker presentations",
                     "Collect, review, and format all speaker materials", _S, _MEDIUM),
        TemplateTask("Set up AV and technical equipment",
                     "Arrange projectors, microphones, screens, and WiFi", _T, _HIGH),
        TemplateTask("Collect attendee feedback",
                     "Send and analyze post-event surveys", _P, _HIGH),
    ),
    milestones=(
        ("Planning complete", "Theme, budget, and venue confirmed"),
        ("Registration open", "Ticketing live and marketing launched"),
        ("Event day", "All logistics in place"),
        ("Wrap-up", "Feedback collected and report compiled"),
    ),
)

HACKATHON = WorkspaceTemplate(
    id="hackathon",
    name="Hackathon",
    departments=(
        TemplateDepartment(
            "Operations", WorkspaceRole.EVENT_COORDINATOR,
            ("Venue", "Food"),
        ),
        TemplateDepartment(
            "Participants", WorkspaceRole.VOLUNTEER_MANAGER,
            ("Registration", "Mentors and Judges"),
        ),
        TemplateDepartment(
            "Tech", WorkspaceRole.TECHNICAL_SPECIALIST,
            ("Infrastructure",),
        ),
    ),
    tasks=(
        TemplateTask("Define hackathon theme and challenges",
                     "Choose problem statements and tracks", _S, _URGENT, "ROOT"),
        TemplateTask("Secure sponsors",
                     "Reach out to companies for sponsorship", _S, _URGENT, "ROOT"),
        TemplateTask("Book venue",
                     "Reserve space with 24/7 access capability", _L, _URGENT),
        TemplateTask("Set up venue",
                     "Arrange workstations, signage, and areas", _L, _URGENT),
        TemplateTask("Plan food and refreshments",
                     "Arrange meals and snacks for 24+ hours", _L, _HIGH),
        TemplateTask("Set up registration platform",
                     "Configure participant registration", _R, _HIGH),
        TemplateTask("Run check-in process",
                     "Register participants and distribute materials", _R, _URGENT),
        TemplateTask("Recruit mentors and judges",
                     "Invite industry experts to participate", _S, _HIGH),
        TemplateTask("Create judging criteria",
                     "Define scoring rubrics and process", _S, _MEDIUM),
        TemplateTask("Set up technical infrastructure",
                     "Prepare WiFi, power, and dev tools access", _T, _HIGH),
        TemplateTask("Manage submission platform",
                     "Ensure all teams submit projects", _T, _URGENT),
    ),
    milestones=(
        ("Challenges announced", "Tracks and prizes published"),
        ("Registration closed", "Teams formed"),
        ("Hacking starts", "Opening ceremony done"),
        ("Judging complete", "Winners announced"),
    ),
)

BLANK = WorkspaceTemplate(id="blank", name="Blank")

WORKSPACE_TEMPLATES: dict[str, WorkspaceTemplate] = {
    t.id: t for t in (CONFERENCE, HACKATHON, BLANK)
}


def get_template(template_id: str | None) -> WorkspaceTemplate | None:
    """None for no template; raises KeyError for an unknown id."""
    if template_id is None:
        return None
    return WORKSPACE_TEMPLATES[template_id]
