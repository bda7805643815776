"""
Lifecycle invariant tests: last-admin protection, cascading project delete,
assignee tenancy and reference cleanup on user delete.
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import actor_for, audit_count, make_tenant, make_user
from tracker.constants.roles import UserRole
from tracker.core import lifecycle
from tracker.exceptions import ForbiddenError, LastAdminError, NotFoundError
from tracker.models.project import Project
from tracker.models.task import Task
from tracker.models.user import User
from tracker.schemas.project import ProjectCreate
from tracker.schemas.task import TaskCreate, TaskUpdate
from tracker.schemas.user import UserUpdate
from tracker.services import project_service, task_service, user_service


async def test_last_admin_cannot_be_deleted(db, tenant, admin, super_actor):
    with pytest.raises(LastAdminError) as exc_info:
        await user_service.delete_user(db, super_actor, admin.id)

    assert exc_info.value.details["reason"] == "last_admin"
    assert await user_service.get_user_by_id(admin.id, db) is not None
    assert await audit_count(db, action="DELETE_USER") == 0


async def test_last_admin_cannot_be_demoted(db, tenant, admin, super_actor):
    with pytest.raises(LastAdminError):
        await user_service.update_user(db, super_actor, admin.id, UserUpdate(role=UserRole.USER))

    refreshed = await user_service.get_user_by_id(admin.id, db)
    assert refreshed.role == UserRole.TENANT_ADMIN


async def test_last_admin_cannot_be_deactivated(db, tenant, admin, super_actor):
    with pytest.raises(LastAdminError):
        await user_service.update_user(db, super_actor, admin.id, UserUpdate(is_active=False))

    refreshed = await user_service.get_user_by_id(admin.id, db)
    assert refreshed.is_active is True


async def test_inactive_admin_does_not_count(db, session_factory, tenant, admin, super_actor):
    async with session_factory() as session:
        await make_user(session, tenant, "dormant@acme.com", UserRole.TENANT_ADMIN, is_active=False)

    with pytest.raises(LastAdminError):
        await user_service.delete_user(db, super_actor, admin.id)


async def test_admin_may_be_removed_when_another_remains(db, session_factory, tenant, admin, super_actor):
    async with session_factory() as session:
        second = await make_user(session, tenant, "second@acme.com", UserRole.TENANT_ADMIN)

    updated = await user_service.update_user(db, super_actor, admin.id, UserUpdate(role=UserRole.USER))
    assert updated.role == UserRole.USER

    with pytest.raises(LastAdminError):
        await user_service.delete_user(db, super_actor, second.id)


async def test_plain_user_delete_is_not_guarded(db, tenant, admin_actor, member):
    deleted_id = await user_service.delete_user(db, admin_actor, member.id)
    assert deleted_id == member.id
    assert await user_service.get_user_by_id(member.id, db) is None
    assert await audit_count(db, action="DELETE_USER", entity_id=str(member.id)) == 1


async def test_removes_active_admin_rules(admin, member):
    assert lifecycle.removes_active_admin(admin, deleting=True)
    assert lifecycle.removes_active_admin(admin, new_role=UserRole.USER)
    assert lifecycle.removes_active_admin(admin, new_is_active=False)
    assert not lifecycle.removes_active_admin(admin, new_role=UserRole.TENANT_ADMIN)
    assert not lifecycle.removes_active_admin(admin, new_is_active=True)
    assert not lifecycle.removes_active_admin(member, deleting=True)


async def test_project_delete_cascades_to_tasks(db, tenant, admin_actor):
    project = await project_service.create_project(db, admin_actor, ProjectCreate(name="Doomed"))
    project_id = project.id
    for i in range(3):
        await task_service.create_task(db, admin_actor, project_id, TaskCreate(title=f"Task {i}"))

    await project_service.delete_project(db, admin_actor, project_id)

    remaining = await db.execute(select(func.count()).select_from(Task).where(Task.project_id == project_id))
    assert remaining.scalar_one() == 0
    gone = await db.execute(select(Project).where(Project.id == project_id))
    assert gone.scalars().first() is None
    # One audit row for the delete; tasks are not audited individually
    assert await audit_count(db, action="DELETE_PROJECT") == 1
    assert await audit_count(db, action="DELETE_TASK") == 0


async def test_failure_mid_cascade_leaves_everything_in_place(db, tenant, admin_actor):
    project = await project_service.create_project(db, admin_actor, ProjectCreate(name="Sturdy"))
    project_id = project.id
    for i in range(2):
        await task_service.create_task(db, admin_actor, project_id, TaskCreate(title=f"Task {i}"))

    # The task rows are already deleted by the time the project row is flushed
    error = OperationalError("DELETE FROM projects", {}, Exception("disk I/O error"))
    with patch.object(db, "flush", side_effect=error) as failing_flush:
        with pytest.raises(OperationalError):
            await project_service.delete_project(db, admin_actor, project_id)
    assert failing_flush.await_count == 1

    tasks = await db.execute(select(func.count()).select_from(Task).where(Task.project_id == project_id))
    assert tasks.scalar_one() == 2
    still_there = await db.execute(select(Project).where(Project.id == project_id))
    assert still_there.scalars().first() is not None
    assert await audit_count(db, action="DELETE_PROJECT") == 0


async def test_member_cannot_delete_project(db, tenant, admin_actor, member_actor):
    project = await project_service.create_project(db, admin_actor, ProjectCreate(name="Protected"))
    project_id = project.id

    with pytest.raises(ForbiddenError):
        await project_service.delete_project(db, member_actor, project_id)
    assert await audit_count(db, action="DELETE_PROJECT") == 0


async def test_assignee_from_other_tenant_is_rejected(db, tenant, admin_actor, other_admin):
    project = await project_service.create_project(db, admin_actor, ProjectCreate(name="Scoped"))
    project_id = project.id

    with pytest.raises(NotFoundError) as exc_info:
        await task_service.create_task(
            db, admin_actor, project_id, TaskCreate(title="Leaky", assigned_to=other_admin.id)
        )
    assert exc_info.value.message == "assignee not in tenant"
    assert await audit_count(db, action="CREATE_TASK") == 0


async def test_reassign_to_other_tenant_is_rejected(db, tenant, admin_actor, member, other_admin):
    project = await project_service.create_project(db, admin_actor, ProjectCreate(name="Scoped"))
    task = await task_service.create_task(
        db, admin_actor, project.id, TaskCreate(title="Mine", assigned_to=member.id)
    )
    task_id = task.id

    with pytest.raises(NotFoundError):
        await task_service.update_task(db, admin_actor, task_id, TaskUpdate(assigned_to=other_admin.id))

    reloaded = await task_service.get_task(db, admin_actor, task_id)
    assert reloaded.assigned_to == member.id


async def test_deleting_user_releases_assignments(db, tenant, admin_actor, member):
    member_actor = actor_for(member)
    project = await project_service.create_project(db, member_actor, ProjectCreate(name="Authored"))
    project_id = project.id
    task = await task_service.create_task(
        db, admin_actor, project_id, TaskCreate(title="Assigned", assigned_to=member.id)
    )
    task_id = task.id

    await user_service.delete_user(db, admin_actor, member.id)

    reloaded_task = await task_service.get_task(db, admin_actor, task_id)
    reloaded_project = await project_service.get_project(db, admin_actor, project_id)
    assert reloaded_task.assigned_to is None
    assert reloaded_project.created_by is None
    users = await db.execute(select(func.count()).select_from(User).where(User.id == member.id))
    assert users.scalar_one() == 0


async def test_concurrent_removal_of_last_two_admins_keeps_one(session_factory):
    async with session_factory() as setup:
        tenant = await make_tenant(setup, "duo")
        first = await make_user(setup, tenant, "first@duo.com", UserRole.TENANT_ADMIN)
        second = await make_user(setup, tenant, "second@duo.com", UserRole.TENANT_ADMIN)
        root = await make_user(setup, None, "ops@duo.com", UserRole.SUPER_ADMIN)
    actor = actor_for(root)

    async def remove_first():
        async with session_factory() as session:
            try:
                await user_service.delete_user(session, actor, first.id)
            except LastAdminError:
                return "denied"
            return "ok"

    async def demote_second():
        async with session_factory() as session:
            try:
                await user_service.update_user(session, actor, second.id, UserUpdate(role=UserRole.USER))
            except LastAdminError:
                return "denied"
            return "ok"

    outcomes = await asyncio.gather(remove_first(), demote_second())

    assert sorted(outcomes) == ["denied", "ok"]
    async with session_factory() as check:
        assert await lifecycle.count_active_admins(check, tenant.id) == 1
        assert await audit_count(check, tenant_id=tenant.id) == 1


async def test_guard_sees_promotion_made_after_target_was_loaded(db, session_factory, tenant, admin, member, super_actor):
    # Loaded while still a plain user
    stale = await user_service.get_user_by_id(member.id, db)
    assert stale.role == UserRole.USER

    async with session_factory() as other:
        await user_service.update_user(other, super_actor, member.id, UserUpdate(role=UserRole.TENANT_ADMIN))
        await user_service.update_user(other, super_actor, admin.id, UserUpdate(role=UserRole.USER))

    with pytest.raises(LastAdminError):
        await user_service.delete_user(db, super_actor, member.id)

    async with session_factory() as check:
        assert await user_service.get_user_by_id(member.id, check) is not None
        assert await lifecycle.count_active_admins(check, tenant.id) == 1
