from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

from tracker.constants.plans import DEFAULT_PLAN, SubscriptionPlan
from tracker.models.tenant import TenantStatus

MIN_PASSWORD_LENGTH = 8

Subdomain = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        to_lower=True,
        min_length=1,
        max_length=63,
        pattern=r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$",
    ),
]


class TenantRegister(BaseModel):
    """Self-service signup: a new tenant plus its first tenant_admin."""

    tenant_name: str = Field(..., min_length=1, max_length=200)
    subdomain: Subdomain
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    admin_full_name: str = Field(..., min_length=1, max_length=200)


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subdomain: Subdomain
    status: TenantStatus = TenantStatus.active
    subscription_plan: SubscriptionPlan = DEFAULT_PLAN


class TenantUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    status: TenantStatus | None = None
    subscription_plan: SubscriptionPlan | None = None


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    subdomain: str
    status: TenantStatus
    subscription_plan: SubscriptionPlan
    max_users: int
    max_projects: int
    created_at: datetime
