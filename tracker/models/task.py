import enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text

from tracker.database import Base
from tracker.models.base import enum_column_type, utcnow


class TaskStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    completed = "completed"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    # Denormalized copy of the project's tenant for fast scoping
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(enum_column_type(TaskStatus, "task_status"), nullable=False, default=TaskStatus.todo)
    priority = Column(enum_column_type(TaskPriority, "task_priority"), nullable=False, default=TaskPriority.medium)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("idx_task_tenant_status", "tenant_id", "status"),)
