"""
Task Service

Tasks inherit their tenant from their project. Assignees are checked against
that tenant whenever they are set or changed.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.audit import audited_transaction
from tracker.core.authorization import Action, ActorContext, require
from tracker.core.lifecycle import ensure_assignee_in_tenant
from tracker.exceptions import NotFoundError, ValidationError
from tracker.models.audit_log import AuditAction
from tracker.models.task import Task, TaskPriority, TaskStatus
from tracker.schemas.task import TaskCreate, TaskStatusUpdate, TaskUpdate
from tracker.services.project_service import load_project

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = ("title", "status", "priority")


async def load_task(db: AsyncSession, actor: ActorContext, task_id: int, action: Action) -> Task:
    """Fetch a task and authorize *action* against its tenant."""
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalars().first()
    if task is None:
        raise NotFoundError("Task", task_id)
    require(actor, action, task.tenant_id)
    return task


async def create_task(
    db: AsyncSession,
    actor: ActorContext,
    project_id: int,
    payload: TaskCreate,
    ip_address: str | None = None,
) -> Task:
    """Create a task in a project; new tasks always start in ``todo``."""
    async with audited_transaction(db, ip_address) as tx:
        project = await load_project(db, actor, project_id, Action.TASK_CREATE)
        if payload.assigned_to is not None:
            await ensure_assignee_in_tenant(db, payload.assigned_to, project.tenant_id)

        task = Task(
            project_id=project.id,
            tenant_id=project.tenant_id,
            title=payload.title,
            description=payload.description,
            status=TaskStatus.todo,
            priority=payload.priority,
            assigned_to=payload.assigned_to,
            due_date=payload.due_date,
        )
        db.add(task)
        await db.flush()

        await tx.record(task.tenant_id, actor.user_id, AuditAction.CREATE_TASK, "task", task.id)

    logger.info("Task created: id=%d project_id=%d", task.id, project.id)
    return task


async def list_tasks(
    db: AsyncSession,
    actor: ActorContext,
    project_id: int,
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    assigned_to: int | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Task]:
    """List a project's tasks with optional status/priority/assignee filters."""
    project = await load_project(db, actor, project_id, Action.TASK_READ)

    query = select(Task).where(Task.project_id == project.id, Task.tenant_id == project.tenant_id)
    if status is not None:
        query = query.where(Task.status == status)
    if priority is not None:
        query = query.where(Task.priority == priority)
    if assigned_to is not None:
        query = query.where(Task.assigned_to == assigned_to)
    result = await db.execute(query.order_by(Task.created_at.desc(), Task.id.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_task(db: AsyncSession, actor: ActorContext, task_id: int) -> Task:
    return await load_task(db, actor, task_id, Action.TASK_READ)


async def update_task(
    db: AsyncSession,
    actor: ActorContext,
    task_id: int,
    payload: TaskUpdate,
    ip_address: str | None = None,
) -> Task:
    """Apply a partial update; a new assignee must belong to the task's tenant."""
    updates = payload.model_dump(exclude_unset=True)
    for field in NON_NULLABLE_FIELDS:
        if field in updates and updates[field] is None:
            raise ValidationError(f"{field} cannot be null", field=field)

    async with audited_transaction(db, ip_address) as tx:
        task = await load_task(db, actor, task_id, Action.TASK_UPDATE)
        new_assignee = updates.get("assigned_to")
        if new_assignee is not None and new_assignee != task.assigned_to:
            await ensure_assignee_in_tenant(db, new_assignee, task.tenant_id)

        for field, value in updates.items():
            setattr(task, field, value)
        await db.flush()

        await tx.record(task.tenant_id, actor.user_id, AuditAction.UPDATE_TASK, "task", task.id)

    logger.info("Task updated: id=%d fields=%s", task.id, sorted(updates))
    return task


async def update_task_status(
    db: AsyncSession,
    actor: ActorContext,
    task_id: int,
    payload: TaskStatusUpdate,
    ip_address: str | None = None,
) -> Task:
    """Move a task to any status; completed tasks may be reopened."""
    async with audited_transaction(db, ip_address) as tx:
        task = await load_task(db, actor, task_id, Action.TASK_UPDATE)
        previous = task.status
        task.status = payload.status
        await db.flush()

        await tx.record(task.tenant_id, actor.user_id, AuditAction.UPDATE_TASK_STATUS, "task", task.id)

    logger.info("Task status changed: id=%d %s -> %s", task.id, previous.value, task.status.value)
    return task


async def delete_task(
    db: AsyncSession,
    actor: ActorContext,
    task_id: int,
    ip_address: str | None = None,
) -> int:
    async with audited_transaction(db, ip_address) as tx:
        task = await load_task(db, actor, task_id, Action.TASK_DELETE)
        tenant_id = task.tenant_id
        await db.delete(task)
        await db.flush()

        await tx.record(tenant_id, actor.user_id, AuditAction.DELETE_TASK, "task", task_id)

    logger.info("Task deleted: id=%d tenant_id=%d", task_id, tenant_id)
    return task_id
