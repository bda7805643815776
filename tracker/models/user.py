from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from tracker.constants.roles import DEFAULT_ROLE, UserRole
from tracker.database import Base
from tracker.models.base import enum_column_type, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # NULL only for super_admin accounts
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    email = Column(String(255), nullable=False)
    credential_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=False)
    role = Column(enum_column_type(UserRole, "user_role"), nullable=False, default=DEFAULT_ROLE)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("email", "tenant_id", name="uq_user_email_tenant"),
        Index("idx_user_tenant_role_active", "tenant_id", "role", "is_active"),
    )
