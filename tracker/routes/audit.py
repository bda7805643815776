from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_current_actor
from tracker.core.authorization import ActorContext
from tracker.database import get_db
from tracker.models.audit_log import AuditAction
from tracker.routes.responses import render
from tracker.schemas.audit import AuditLogResponse

router = APIRouter(tags=["Audit"])


@router.get("", response_model=list[AuditLogResponse])
async def list_audit_logs_route(
    request: Request,
    tenant_id: int | None = None,
    action: AuditAction | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: datetime | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """Audit trail of the caller's tenant (tenant_admin) or any tenant (super_admin)."""
    result = await operations.list_audit_logs(
        db,
        actor,
        tenant_id=tenant_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        since=since,
        skip=skip,
        limit=limit,
    )
    return render(result, request, AuditLogResponse, many=True)
