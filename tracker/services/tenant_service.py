"""
Tenant Service

Async operations for Tenant entities. All functions accept an injected
AsyncSession; mutations run inside ``audited_transaction`` so the tenant
change and its audit row commit together.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.auth import hash_password
from tracker.constants.plans import DEFAULT_PLAN, limits_for
from tracker.constants.roles import UserRole
from tracker.core.audit import audited_transaction
from tracker.core.authorization import Action, ActorContext, require
from tracker.exceptions import ConflictError, NotFoundError
from tracker.models.audit_log import AuditAction
from tracker.models.tenant import Tenant, TenantStatus
from tracker.models.user import User
from tracker.schemas.tenant import TenantCreate, TenantRegister, TenantUpdate

logger = logging.getLogger(__name__)


async def get_tenant_by_id(tenant_id: int, db: AsyncSession) -> Tenant | None:
    """Return a Tenant by primary key, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalars().first()


async def get_tenant_by_subdomain(subdomain: str, db: AsyncSession) -> Tenant | None:
    """Return a Tenant by subdomain, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.subdomain == subdomain.lower()))
    return result.scalars().first()


async def _ensure_subdomain_free(subdomain: str, db: AsyncSession) -> None:
    if await get_tenant_by_subdomain(subdomain, db) is not None:
        raise ConflictError("Tenant", "subdomain", subdomain)


async def _flush_unique(db: AsyncSession, resource_type: str, field: str, value: str) -> None:
    """Flush pending rows, turning a unique-constraint race into a ConflictError."""
    try:
        await db.flush()
    except IntegrityError as e:
        logger.info("Unique constraint hit for %s.%s=%s: %s", resource_type, field, value, e.orig)
        raise ConflictError(resource_type, field, value) from e


async def register_tenant(
    db: AsyncSession,
    payload: TenantRegister,
    ip_address: str | None = None,
) -> tuple[Tenant, User]:
    """
    Self-service signup: create a tenant on the free plan and its first
    tenant_admin in one audited transaction.
    """
    async with audited_transaction(db, ip_address) as tx:
        await _ensure_subdomain_free(payload.subdomain, db)

        tenant = Tenant(
            name=payload.tenant_name,
            subdomain=payload.subdomain,
            status=TenantStatus.active,
            subscription_plan=DEFAULT_PLAN,
            **limits_for(DEFAULT_PLAN),
        )
        db.add(tenant)
        await _flush_unique(db, "Tenant", "subdomain", payload.subdomain)

        admin = User(
            tenant_id=tenant.id,
            email=payload.admin_email.lower(),
            credential_hash=hash_password(payload.admin_password),
            full_name=payload.admin_full_name,
            role=UserRole.TENANT_ADMIN,
            is_active=True,
        )
        db.add(admin)
        await db.flush()

        await tx.record(tenant.id, admin.id, AuditAction.REGISTER_TENANT, "tenant", tenant.id)

    logger.info("Tenant registered: id=%d subdomain=%s admin_id=%d", tenant.id, tenant.subdomain, admin.id)
    return tenant, admin


async def create_tenant(
    db: AsyncSession,
    actor: ActorContext,
    payload: TenantCreate,
    ip_address: str | None = None,
) -> Tenant:
    """Create a tenant without an admin (super_admin only)."""
    async with audited_transaction(db, ip_address) as tx:
        require(actor, Action.TENANT_CREATE, None)
        await _ensure_subdomain_free(payload.subdomain, db)

        tenant = Tenant(
            name=payload.name,
            subdomain=payload.subdomain,
            status=payload.status,
            subscription_plan=payload.subscription_plan,
            **limits_for(payload.subscription_plan),
        )
        db.add(tenant)
        await _flush_unique(db, "Tenant", "subdomain", payload.subdomain)

        await tx.record(tenant.id, actor.user_id, AuditAction.CREATE_TENANT, "tenant", tenant.id)

    logger.info("Tenant created: id=%d subdomain=%s", tenant.id, tenant.subdomain)
    return tenant


async def get_tenant(db: AsyncSession, actor: ActorContext, tenant_id: int) -> Tenant:
    """Return one tenant; non-super_admins may only read their own."""
    require(actor, Action.TENANT_READ, tenant_id)
    tenant = await get_tenant_by_id(tenant_id, db)
    if tenant is None:
        raise NotFoundError("Tenant", tenant_id)
    return tenant


async def list_tenants(
    db: AsyncSession,
    actor: ActorContext,
    status: TenantStatus | None = None,
    subscription_plan: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> list[Tenant]:
    """Return tenants, newest first (super_admin only)."""
    require(actor, Action.TENANT_LIST, None)
    query = select(Tenant)
    if status is not None:
        query = query.where(Tenant.status == status)
    if subscription_plan is not None:
        query = query.where(Tenant.subscription_plan == subscription_plan)
    result = await db.execute(query.order_by(Tenant.created_at.desc(), Tenant.id.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())


async def update_tenant(
    db: AsyncSession,
    actor: ActorContext,
    tenant_id: int,
    payload: TenantUpdate,
    ip_address: str | None = None,
) -> Tenant:
    """
    Apply a partial update to a Tenant (super_admin only).

    Changing the subscription plan resets max_users/max_projects to the new
    plan's ceilings.
    """
    async with audited_transaction(db, ip_address) as tx:
        require(actor, Action.TENANT_UPDATE, tenant_id)
        tenant = await get_tenant_by_id(tenant_id, db)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)

        updates = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in updates:
            tenant.name = updates["name"]
        if "status" in updates:
            tenant.status = updates["status"]
        if "subscription_plan" in updates:
            tenant.subscription_plan = updates["subscription_plan"]
            for field, value in limits_for(updates["subscription_plan"]).items():
                setattr(tenant, field, value)
        await db.flush()

        await tx.record(tenant.id, actor.user_id, AuditAction.UPDATE_TENANT, "tenant", tenant.id)

    logger.info("Tenant updated: id=%d fields=%s", tenant.id, sorted(updates))
    return tenant
