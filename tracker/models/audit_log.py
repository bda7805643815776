import enum

from sqlalchemy import Column, DateTime, Index, Integer, String

from tracker.database import Base
from tracker.models.base import utcnow


class AuditAction(str, enum.Enum):
    REGISTER_TENANT = "REGISTER_TENANT"
    CREATE_TENANT = "CREATE_TENANT"
    UPDATE_TENANT = "UPDATE_TENANT"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    CREATE_PROJECT = "CREATE_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    UPDATE_TASK_STATUS = "UPDATE_TASK_STATUS"
    DELETE_TASK = "DELETE_TASK"
    LOGIN_FAILED = "LOGIN_FAILED"


class AuditLog(Base):
    """Append-only record of an accepted mutation.

    tenant_id and user_id are plain columns, not foreign keys, so rows outlive
    the users and entities they describe.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_audit_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_entity", "entity_type", "entity_id"),
    )
