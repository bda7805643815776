import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tracker.auth import create_access_token, verify_password
from tracker.config import settings
from tracker.core.audit import record_failed_login
from tracker.core.authorization import ActorContext
from tracker.exceptions import AuthenticationError, ForbiddenError, NotFoundError, ValidationError
from tracker.models.tenant import Tenant, TenantStatus
from tracker.models.user import User
from tracker.schemas.auth import LoginRequest
from tracker.services.tenant_service import get_tenant_by_id, get_tenant_by_subdomain
from tracker.services.user_service import get_user_by_email, get_user_by_id

logger = logging.getLogger(__name__)


async def authenticate(
    db: AsyncSession,
    payload: LoginRequest,
    ip_address: str | None = None,
) -> dict:
    """
    Verify credentials and issue an access token.

    Tenant users log in against their tenant's subdomain; super_admin
    accounts (no tenant) log in without one. A password mismatch on an
    existing account is recorded as LOGIN_FAILED before the error is raised.
    """
    tenant: Tenant | None = None
    if payload.tenant_subdomain:
        tenant = await get_tenant_by_subdomain(payload.tenant_subdomain, db)
        if tenant is None:
            raise NotFoundError("Tenant", message="Tenant not found")
        user = await get_user_by_email(payload.email, tenant.id, db)
    else:
        user = await get_user_by_email(payload.email, None, db)
        if user is None:
            raise ValidationError("Tenant subdomain is required", field="tenant_subdomain")

    if user is None:
        raise AuthenticationError()

    if not verify_password(payload.password, user.credential_hash):
        await record_failed_login(user.tenant_id, user.id, ip_address)
        raise AuthenticationError()

    if not user.is_active:
        raise ForbiddenError("Account is inactive")
    if tenant is not None and tenant.status == TenantStatus.suspended:
        raise ForbiddenError("Tenant is suspended")

    logger.info("User logged in: id=%d tenant_id=%s", user.id, user.tenant_id)
    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
    }


async def get_profile(db: AsyncSession, actor: ActorContext) -> tuple[User, Tenant | None]:
    """Return the actor's own user record and tenant."""
    user = await get_user_by_id(actor.user_id, db)
    if user is None:
        raise NotFoundError("User", actor.user_id)
    tenant = await get_tenant_by_id(user.tenant_id, db) if user.tenant_id is not None else None
    return user, tenant
