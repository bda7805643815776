"""
Lifecycle manager

Structural invariants that span more than one entity:

- last-admin protection: a tenant that has a tenant_admin always keeps at
  least one *active* tenant_admin;
- project deletion cascades to its tasks in the same transaction;
- task assignees must belong to the task's tenant;
- deleting a user releases the references other rows hold to it.

Every helper works inside the caller's open transaction and raises before
anything is written, so the caller's rollback discards the whole attempt.
"""

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.roles import UserRole
from tracker.core.quota import lock_tenant
from tracker.exceptions import LastAdminError, NotFoundError
from tracker.models.project import Project
from tracker.models.task import Task
from tracker.models.user import User

logger = logging.getLogger(__name__)


async def count_active_admins(db: AsyncSession, tenant_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(User)
        .where(
            User.tenant_id == tenant_id,
            User.role == UserRole.TENANT_ADMIN,
            User.is_active.is_(True),
        )
    )
    return result.scalar_one()


def removes_active_admin(
    user: User,
    *,
    new_role: UserRole | None = None,
    new_is_active: bool | None = None,
    deleting: bool = False,
) -> bool:
    """True when the change takes an active tenant_admin out of that role."""
    if user.role != UserRole.TENANT_ADMIN or not user.is_active or user.tenant_id is None:
        return False
    if deleting:
        return True
    if new_role is not None and new_role != UserRole.TENANT_ADMIN:
        return True
    return new_is_active is False


async def ensure_admin_remains(
    db: AsyncSession,
    user: User,
    *,
    new_role: UserRole | None = None,
    new_is_active: bool | None = None,
    deleting: bool = False,
) -> None:
    """
    Deny deleting, demoting or deactivating the last active tenant_admin.

    The tenant row is locked before counting so two concurrent removals of
    the last two admins cannot both pass. The target is re-read under the
    lock; a copy loaded earlier may predate a concurrent promotion.
    """
    if user.tenant_id is None:
        return
    could_remove = deleting or new_is_active is False or (new_role is not None and new_role != UserRole.TENANT_ADMIN)
    if not could_remove:
        return

    await lock_tenant(db, user.tenant_id)
    result = await db.execute(
        select(User).where(User.id == user.id).execution_options(populate_existing=True)
    )
    if result.scalars().first() is None:
        raise NotFoundError("User", user.id)
    if not removes_active_admin(user, new_role=new_role, new_is_active=new_is_active, deleting=deleting):
        return

    remaining = await count_active_admins(db, user.tenant_id)
    if remaining <= 1:
        logger.warning("Last admin protection: tenant_id=%d user_id=%d", user.tenant_id, user.id)
        raise LastAdminError(user.tenant_id)


async def ensure_assignee_in_tenant(db: AsyncSession, assignee_id: int, tenant_id: int) -> User:
    """Return the assignee, or raise NotFoundError if they are not in *tenant_id*."""
    result = await db.execute(select(User).where(User.id == assignee_id, User.tenant_id == tenant_id))
    assignee = result.scalars().first()
    if assignee is None:
        raise NotFoundError("User", assignee_id, message="assignee not in tenant")
    return assignee


async def delete_project_cascade(db: AsyncSession, project: Project) -> int:
    """
    Delete a project's tasks and then the project itself.

    Runs in the caller's transaction; returns the number of tasks removed.
    """
    result = await db.execute(
        delete(Task).where(Task.project_id == project.id).execution_options(synchronize_session=False)
    )
    removed = result.rowcount
    await db.delete(project)
    await db.flush()
    logger.info("Project cascade delete: project_id=%d tasks_removed=%d", project.id, removed)
    return removed


async def release_user_references(db: AsyncSession, user: User) -> None:
    """Clear task assignments and project authorship held by a user being deleted."""
    await db.execute(update(Task).where(Task.assigned_to == user.id).values(assigned_to=None))
    await db.execute(update(Project).where(Project.created_by == user.id).values(created_by=None))
