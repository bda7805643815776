"""
User Service

User management inside a tenant. Creation reserves a quota slot; role
changes, deactivation and deletion go through last-admin protection.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.auth import hash_password
from tracker.constants.roles import UserRole
from tracker.core.audit import audited_transaction
from tracker.core.authorization import Action, ActorContext, require
from tracker.core.lifecycle import ensure_admin_remains, release_user_references
from tracker.core.quota import QuotaKind, reserve_slot
from tracker.exceptions import ConflictError, NotFoundError
from tracker.models.audit_log import AuditAction
from tracker.models.user import User
from tracker.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


async def get_user_by_id(user_id: int, db: AsyncSession) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalars().first()


async def get_user_by_email(email: str, tenant_id: int | None, db: AsyncSession) -> User | None:
    """Look a user up by the (email, tenant_id) pair."""
    tenant_clause = User.tenant_id.is_(None) if tenant_id is None else User.tenant_id == tenant_id
    result = await db.execute(select(User).where(User.email == email.lower(), tenant_clause))
    return result.scalars().first()


async def _load_user(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(user_id, db)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def create_user(
    db: AsyncSession,
    actor: ActorContext,
    tenant_id: int,
    payload: UserCreate,
    ip_address: str | None = None,
) -> User:
    """Create a user in *tenant_id* (tenant_admin of that tenant, or super_admin)."""
    email = payload.email.lower()
    async with audited_transaction(db, ip_address) as tx:
        require(actor, Action.USER_CREATE, tenant_id)
        await reserve_slot(db, tenant_id, QuotaKind.user)

        if await get_user_by_email(email, tenant_id, db) is not None:
            raise ConflictError("User", "email", email)

        user = User(
            tenant_id=tenant_id,
            email=email,
            credential_hash=hash_password(payload.password),
            full_name=payload.full_name,
            role=payload.role,
            is_active=True,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError("User", "email", email) from e

        await tx.record(tenant_id, actor.user_id, AuditAction.CREATE_USER, "user", user.id)

    logger.info("User created: id=%d tenant_id=%d role=%s", user.id, tenant_id, user.role.value)
    return user


async def list_users(
    db: AsyncSession,
    actor: ActorContext,
    tenant_id: int | None = None,
    role: UserRole | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[User]:
    """List users of a tenant (defaults to the actor's own tenant)."""
    if tenant_id is None:
        tenant_id = actor.tenant_id
    require(actor, Action.USER_READ, tenant_id)

    query = select(User).where(User.tenant_id == tenant_id)
    if role is not None:
        query = query.where(User.role == role)
    result = await db.execute(query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, actor: ActorContext, user_id: int) -> User:
    user = await _load_user(db, user_id)
    require(actor, Action.USER_READ, user.tenant_id)
    return user


async def update_user(
    db: AsyncSession,
    actor: ActorContext,
    user_id: int,
    payload: UserUpdate,
    ip_address: str | None = None,
) -> User:
    """
    Update a user's name, role or active flag.

    A tenant_admin cannot change their own role, and the last active
    tenant_admin of a tenant cannot be demoted or deactivated.
    """
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    new_role = updates.get("role")

    async with audited_transaction(db, ip_address) as tx:
        user = await _load_user(db, user_id)
        require(actor, Action.USER_UPDATE, user.tenant_id, new_role, target_user_id=user.id)
        await ensure_admin_remains(db, user, new_role=new_role, new_is_active=updates.get("is_active"))

        for field, value in updates.items():
            setattr(user, field, value)
        await db.flush()

        await tx.record(user.tenant_id, actor.user_id, AuditAction.UPDATE_USER, "user", user.id)

    logger.info("User updated: id=%d fields=%s", user.id, sorted(updates))
    return user


async def delete_user(
    db: AsyncSession,
    actor: ActorContext,
    user_id: int,
    ip_address: str | None = None,
) -> int:
    """Hard-delete a user; returns the deleted id."""
    async with audited_transaction(db, ip_address) as tx:
        user = await _load_user(db, user_id)
        require(actor, Action.USER_DELETE, user.tenant_id)
        await ensure_admin_remains(db, user, deleting=True)

        await tx.record(user.tenant_id, actor.user_id, AuditAction.DELETE_USER, "user", user.id)
        await release_user_references(db, user)
        await db.delete(user)
        await db.flush()

    logger.info("User deleted: id=%d tenant_id=%s", user_id, user.tenant_id)
    return user_id
