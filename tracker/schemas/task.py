from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from tracker.models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str | None = None
    priority: TaskPriority = TaskPriority.medium
    assigned_to: int | None = None
    due_date: date | None = None


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the request are applied.

    Sending ``assigned_to: null`` explicitly clears the assignee.
    """

    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: int | None = None
    due_date: date | None = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    tenant_id: int
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: int | None
    due_date: date | None
    created_at: datetime
