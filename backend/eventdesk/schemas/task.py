"""Task Schemas — task CRUD, assignment, progress, dependencies, comments, history."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from eventdesk.core.domain_types import TaskCategory, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = Field(None, max_length=10_000)
    priority: TaskPriority = TaskPriority.MEDIUM
    category: TaskCategory = TaskCategory.SETUP
    due_date: datetime | None = None
    assigned_to: UUID | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = Field(None, max_length=10_000)
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    due_date: datetime | None = None


class TaskAssign(BaseModel):
    assigned_to: UUID | None


class TaskProgressUpdate(BaseModel):
    status: TaskStatus | None = None
    progress: int | None = Field(None, ge=0, le=100)


class DependencyCreate(BaseModel):
    depends_on_id: UUID


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    category: TaskCategory
    progress: int
    assigned_to: UUID | None
    created_by: UUID | None
    due_date: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class DependencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    depends_on_id: UUID
    created_at: datetime


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    user_id: UUID
    content: str
    created_at: datetime


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    user_id: UUID | None
    activity_type: str
    description: str
    metadata: dict = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    created_at: datetime
