"""
Tenant model

Each Tenant is an isolated customer organisation and the unit of quota and
access scoping. Row-level isolation via tenant_id FK on every owned table.
"""

import enum

from sqlalchemy import Column, DateTime, Index, Integer, String

from tracker.constants.plans import DEFAULT_PLAN, PLAN_LIMITS, SubscriptionPlan
from tracker.database import Base
from tracker.models.base import enum_column_type, utcnow


class TenantStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"
    trial = "trial"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    subdomain = Column(String(100), nullable=False, unique=True)
    status = Column(enum_column_type(TenantStatus, "tenant_status"), nullable=False, default=TenantStatus.active)
    subscription_plan = Column(
        enum_column_type(SubscriptionPlan, "subscription_plan"), nullable=False, default=DEFAULT_PLAN
    )
    max_users = Column(Integer, nullable=False, default=PLAN_LIMITS[DEFAULT_PLAN]["max_users"])
    max_projects = Column(Integer, nullable=False, default=PLAN_LIMITS[DEFAULT_PLAN]["max_projects"])
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("idx_tenant_status", "status"),)
