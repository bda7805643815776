"""Read access to the audit trail. Reads never write audit rows."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.authorization import Action, ActorContext, require
from tracker.models.audit_log import AuditAction, AuditLog


async def list_audit_logs(
    db: AsyncSession,
    actor: ActorContext,
    tenant_id: int | None = None,
    action: AuditAction | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: datetime | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[AuditLog]:
    """Return a tenant's audit rows, newest first (tenant_admin or super_admin)."""
    if tenant_id is None:
        tenant_id = actor.tenant_id
    require(actor, Action.AUDIT_READ, tenant_id)

    if tenant_id is None:
        # super_admin without a tenant filter sees platform-level rows too
        query = select(AuditLog)
    else:
        query = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
    if action is not None:
        query = query.where(AuditLog.action == AuditAction(action).value)
    if entity_type is not None:
        query = query.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.where(AuditLog.entity_id == str(entity_id))
    if since is not None:
        query = query.where(AuditLog.created_at >= since)

    result = await db.execute(query.order_by(AuditLog.id.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())
