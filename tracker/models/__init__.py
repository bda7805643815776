from .audit_log import AuditAction, AuditLog
from .project import Project, ProjectStatus
from .task import Task, TaskPriority, TaskStatus
from .tenant import Tenant, TenantStatus
from .user import User

__all__ = [
    "AuditAction",
    "AuditLog",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "Tenant",
    "TenantStatus",
    "User",
]
