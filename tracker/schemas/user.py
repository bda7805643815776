from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from tracker.constants.roles import DEFAULT_ROLE, UserRole
from tracker.schemas.tenant import MIN_PASSWORD_LENGTH


def _tenant_role(value: UserRole) -> UserRole:
    # super_admin accounts live outside every tenant
    if value == UserRole.SUPER_ADMIN:
        raise ValueError("Users inside a tenant may only be 'tenant_admin' or 'user'")
    return value


TenantRole = Annotated[UserRole, AfterValidator(_tenant_role)]


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    role: TenantRole = DEFAULT_ROLE


class UserUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=200)
    role: TenantRole | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int | None
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
