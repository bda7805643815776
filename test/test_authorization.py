import pytest

from tracker.constants.roles import UserRole, role_at_least
from tracker.core.authorization import (
    Action,
    ActorContext,
    Allow,
    Deny,
    authorize,
    require,
)
from tracker.exceptions import CrossTenantError, ErrorKind, ForbiddenError

SUPER = ActorContext(user_id=1, tenant_id=None, role=UserRole.SUPER_ADMIN)
ADMIN_A = ActorContext(user_id=2, tenant_id=10, role=UserRole.TENANT_ADMIN)
USER_A = ActorContext(user_id=3, tenant_id=10, role=UserRole.USER)
ADMIN_B = ActorContext(user_id=4, tenant_id=20, role=UserRole.TENANT_ADMIN)


def test_actor_role_is_coerced_from_string():
    actor = ActorContext(user_id=5, tenant_id=10, role="tenant_admin")
    assert actor.role is UserRole.TENANT_ADMIN
    assert not actor.is_super_admin


def test_actor_rejects_unknown_role():
    with pytest.raises(ValueError):
        ActorContext(user_id=5, tenant_id=10, role="owner")


@pytest.mark.parametrize("action", list(Action))
def test_super_admin_is_allowed_everything(action):
    assert isinstance(authorize(SUPER, action, 10), Allow)
    assert isinstance(authorize(SUPER, action, None), Allow)


@pytest.mark.parametrize(
    "action",
    [Action.TENANT_CREATE, Action.TENANT_LIST, Action.TENANT_UPDATE, Action.TENANT_DELETE],
)
def test_tenant_management_is_super_admin_only(action):
    decision = authorize(ADMIN_A, action, 10)
    assert isinstance(decision, Deny)
    assert "super_admin" in decision.reason


def test_tenant_admin_may_read_own_tenant():
    assert isinstance(authorize(ADMIN_A, Action.TENANT_READ, 10), Allow)
    assert isinstance(authorize(USER_A, Action.TENANT_READ, 10), Allow)


@pytest.mark.parametrize("action", [a for a in Action if a.value.split(":")[0] in ("user", "project", "task", "audit")])
def test_other_tenant_is_always_denied(action):
    decision = authorize(ADMIN_B, action, 10)
    assert isinstance(decision, Deny)
    assert decision.is_cross_tenant


def test_actor_without_tenant_cannot_touch_tenant_resources():
    orphan = ActorContext(user_id=9, tenant_id=None, role=UserRole.USER)
    assert authorize(orphan, Action.PROJECT_READ, 10).is_cross_tenant


@pytest.mark.parametrize(
    "action",
    [Action.USER_CREATE, Action.USER_UPDATE, Action.USER_DELETE, Action.PROJECT_DELETE, Action.AUDIT_READ],
)
def test_plain_user_needs_tenant_admin(action):
    decision = authorize(USER_A, action, 10)
    assert isinstance(decision, Deny)
    assert not decision.is_cross_tenant
    assert isinstance(authorize(ADMIN_A, action, 10), Allow)


@pytest.mark.parametrize(
    "action",
    [
        Action.USER_READ,
        Action.PROJECT_CREATE,
        Action.PROJECT_READ,
        Action.PROJECT_UPDATE,
        Action.TASK_CREATE,
        Action.TASK_READ,
        Action.TASK_UPDATE,
        Action.TASK_DELETE,
    ],
)
def test_plain_user_may_work_inside_own_tenant(action):
    assert isinstance(authorize(USER_A, action, 10), Allow)


def test_tenant_admin_cannot_change_own_role():
    decision = authorize(ADMIN_A, Action.USER_UPDATE, 10, UserRole.USER, target_user_id=ADMIN_A.user_id)
    assert isinstance(decision, Deny)
    assert decision.reason == "cannot change own role"


def test_tenant_admin_may_resubmit_own_unchanged_role():
    decision = authorize(ADMIN_A, Action.USER_UPDATE, 10, UserRole.TENANT_ADMIN, target_user_id=ADMIN_A.user_id)
    assert isinstance(decision, Allow)


def test_tenant_admin_may_change_another_users_role():
    decision = authorize(ADMIN_A, Action.USER_UPDATE, 10, UserRole.TENANT_ADMIN, target_user_id=USER_A.user_id)
    assert isinstance(decision, Allow)


def test_super_admin_may_change_any_role():
    decision = authorize(SUPER, Action.USER_UPDATE, 10, UserRole.USER, target_user_id=ADMIN_A.user_id)
    assert isinstance(decision, Allow)


def test_require_raises_cross_tenant_error():
    with pytest.raises(CrossTenantError) as exc_info:
        require(ADMIN_B, Action.PROJECT_READ, 10)
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert exc_info.value.details["reason"] == "cross_tenant"


def test_require_raises_forbidden_for_role_denial():
    with pytest.raises(ForbiddenError) as exc_info:
        require(USER_A, Action.USER_DELETE, 10)
    assert not isinstance(exc_info.value, CrossTenantError)
    assert exc_info.value.status_code == 403
    assert exc_info.value.details["action"] == "user:delete"


def test_require_passes_silently_when_allowed():
    assert require(ADMIN_A, Action.PROJECT_DELETE, 10) is None


def test_role_hierarchy_ordering():
    assert role_at_least(UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN)
    assert role_at_least("tenant_admin", "tenant_admin")
    assert not role_at_least(UserRole.USER, UserRole.TENANT_ADMIN)
    assert not role_at_least("owner", UserRole.USER)
