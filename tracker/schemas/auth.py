from pydantic import BaseModel, EmailStr

from tracker.schemas.tenant import TenantResponse
from tracker.schemas.user import UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    # Omitted only by super_admin accounts
    tenant_subdomain: str | None = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    user: UserResponse
    tenant: TenantResponse | None = None
