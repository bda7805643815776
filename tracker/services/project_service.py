"""Project operations: quota-guarded create, tenant-scoped reads, cascading delete."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.audit import audited_transaction
from tracker.core.authorization import Action, ActorContext, require
from tracker.core.lifecycle import delete_project_cascade
from tracker.core.quota import QuotaKind, reserve_slot
from tracker.exceptions import NotFoundError, ValidationError
from tracker.models.audit_log import AuditAction
from tracker.models.project import Project, ProjectStatus
from tracker.schemas.project import ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)


async def load_project(db: AsyncSession, actor: ActorContext, project_id: int, action: Action) -> Project:
    """Fetch a project and authorize *action* against its tenant."""
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalars().first()
    if project is None:
        raise NotFoundError("Project", project_id)
    require(actor, action, project.tenant_id)
    return project


async def create_project(
    db: AsyncSession,
    actor: ActorContext,
    payload: ProjectCreate,
    ip_address: str | None = None,
    tenant_id: int | None = None,
) -> Project:
    """
    Create a project in the actor's tenant.

    super_admin has no tenant of its own and must name one explicitly.
    """
    tenant_id = tenant_id if tenant_id is not None else actor.tenant_id
    if tenant_id is None:
        raise ValidationError("tenant_id is required", field="tenant_id")

    async with audited_transaction(db, ip_address) as tx:
        require(actor, Action.PROJECT_CREATE, tenant_id)
        await reserve_slot(db, tenant_id, QuotaKind.project)

        project = Project(
            tenant_id=tenant_id,
            name=payload.name,
            description=payload.description,
            status=ProjectStatus.active,
            created_by=actor.user_id,
        )
        db.add(project)
        await db.flush()

        await tx.record(tenant_id, actor.user_id, AuditAction.CREATE_PROJECT, "project", project.id)

    logger.info("Project created: id=%d tenant_id=%d", project.id, tenant_id)
    return project


async def list_projects(
    db: AsyncSession,
    actor: ActorContext,
    status: ProjectStatus | None = None,
    tenant_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Project]:
    """List the projects of the actor's tenant, newest first."""
    tenant_id = tenant_id if tenant_id is not None else actor.tenant_id
    require(actor, Action.PROJECT_READ, tenant_id)

    query = select(Project).where(Project.tenant_id == tenant_id)
    if status is not None:
        query = query.where(Project.status == status)
    result = await db.execute(query.order_by(Project.created_at.desc(), Project.id.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_project(db: AsyncSession, actor: ActorContext, project_id: int) -> Project:
    return await load_project(db, actor, project_id, Action.PROJECT_READ)


async def update_project(
    db: AsyncSession,
    actor: ActorContext,
    project_id: int,
    payload: ProjectUpdate,
    ip_address: str | None = None,
) -> Project:
    """Apply a partial update; any status of the closed set is a valid target."""
    updates = payload.model_dump(exclude_unset=True)
    for field in ("name", "status"):
        if field in updates and updates[field] is None:
            raise ValidationError(f"{field} cannot be null", field=field)

    async with audited_transaction(db, ip_address) as tx:
        project = await load_project(db, actor, project_id, Action.PROJECT_UPDATE)
        for field, value in updates.items():
            setattr(project, field, value)
        await db.flush()

        await tx.record(project.tenant_id, actor.user_id, AuditAction.UPDATE_PROJECT, "project", project.id)

    logger.info("Project updated: id=%d fields=%s", project.id, sorted(updates))
    return project


async def delete_project(
    db: AsyncSession,
    actor: ActorContext,
    project_id: int,
    ip_address: str | None = None,
) -> int:
    """Delete a project and all of its tasks as one unit (tenant_admin only)."""
    async with audited_transaction(db, ip_address) as tx:
        project = await load_project(db, actor, project_id, Action.PROJECT_DELETE)
        tenant_id = project.tenant_id
        await delete_project_cascade(db, project)

        await tx.record(tenant_id, actor.user_id, AuditAction.DELETE_PROJECT, "project", project_id)

    logger.info("Project deleted: id=%d tenant_id=%d", project_id, tenant_id)
    return project_id
