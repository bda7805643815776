"""
Quota enforcer

Per-tenant user/project ceilings are checked and reserved inside the same
transaction as the create that consumes the slot. The tenant row is locked
first so two concurrent creates on one tenant cannot both count below the
limit.
"""

import enum
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.exceptions import NotFoundError, QuotaExceededError
from tracker.models.project import Project
from tracker.models.tenant import Tenant
from tracker.models.user import User

logger = logging.getLogger(__name__)


class QuotaKind(str, enum.Enum):
    user = "user"
    project = "project"


async def lock_tenant(db: AsyncSession, tenant_id: int) -> Tenant:
    """
    Take the per-tenant write lock and return the freshly read tenant.

    The lock is a no-op UPDATE of the tenant row: PostgreSQL holds a row lock
    until commit, SQLite holds the database write lock. Either way a second
    transaction blocks here until the first commits or rolls back.
    """
    result = await db.execute(
        update(Tenant)
        .where(Tenant.id == tenant_id)
        .values(updated_at=Tenant.updated_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Tenant", tenant_id)

    result = await db.execute(
        select(Tenant).where(Tenant.id == tenant_id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


async def count_rows(db: AsyncSession, tenant_id: int, kind: QuotaKind) -> int:
    """Count the tenant's existing rows of the given kind."""
    model = User if kind == QuotaKind.user else Project
    result = await db.execute(select(func.count()).select_from(model).where(model.tenant_id == tenant_id))
    return result.scalar_one()


async def reserve_slot(db: AsyncSession, tenant_id: int, kind: QuotaKind) -> Tenant:
    """
    Reserve one user or project slot for *tenant_id*.

    Must be called inside the transaction that performs the create. Returns
    the locked tenant on success; raises QuotaExceededError when the tenant
    is already at its ceiling.
    """
    kind = QuotaKind(kind)
    tenant = await lock_tenant(db, tenant_id)
    limit = tenant.max_users if kind == QuotaKind.user else tenant.max_projects
    current = await count_rows(db, tenant_id, kind)

    if current >= limit:
        plan = getattr(tenant.subscription_plan, "value", tenant.subscription_plan)
        logger.warning(
            "Quota exceeded: tenant_id=%d kind=%s count=%d limit=%d plan=%s",
            tenant_id,
            kind.value,
            current,
            limit,
            plan,
        )
        raise QuotaExceededError(kind.value, limit, plan)

    logger.debug("Quota slot reserved: tenant_id=%d kind=%s (%d/%d)", tenant_id, kind.value, current + 1, limit)
    return tenant
