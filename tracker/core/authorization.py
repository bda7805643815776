"""
Authorization engine

Single decision point for every role/tenant check. ``authorize`` is pure:
it takes a snapshot of the actor and the target and never touches storage,
so services can call it after loading the target and before writing.

Rules are evaluated in order and the first match wins:

1. super_admin is allowed everything, in every tenant.
2. Tenant create/list/update/delete is super_admin only.
3. Tenant-scoped actions need the actor to belong to the target tenant.
4. User create/update/delete needs tenant_admin.
5. Project delete needs tenant_admin.
6. A tenant_admin may not change the role on their own user record.
7. Reading the audit trail needs tenant_admin.
8. Anything else inside the actor's own tenant is allowed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from tracker.constants.roles import UserRole, role_at_least
from tracker.exceptions import CrossTenantError, ForbiddenError


class Action(str, enum.Enum):
    TENANT_CREATE = "tenant:create"
    TENANT_READ = "tenant:read"
    TENANT_LIST = "tenant:list"
    TENANT_UPDATE = "tenant:update"
    TENANT_DELETE = "tenant:delete"
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    PROJECT_CREATE = "project:create"
    PROJECT_READ = "project:read"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    TASK_CREATE = "task:create"
    TASK_READ = "task:read"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"
    AUDIT_READ = "audit:read"


# Actions on the tenant record itself, or across all tenants
SUPER_ADMIN_ONLY = frozenset(
    {Action.TENANT_CREATE, Action.TENANT_LIST, Action.TENANT_UPDATE, Action.TENANT_DELETE}
)

TENANT_ADMIN_REQUIRED = frozenset(
    {
        Action.USER_CREATE,
        Action.USER_UPDATE,
        Action.USER_DELETE,
        Action.PROJECT_DELETE,
        Action.AUDIT_READ,
    }
)

CROSS_TENANT_REASON = "cross-tenant access"
SELF_ROLE_CHANGE_REASON = "cannot change own role"


@dataclass(frozen=True)
class ActorContext:
    """Authenticated caller identity, as verified by the credential layer."""

    user_id: int
    tenant_id: int | None
    role: UserRole

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", UserRole(self.role))

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str
    allowed = False

    @property
    def is_cross_tenant(self) -> bool:
        return self.reason == CROSS_TENANT_REASON


Decision = Union[Allow, Deny]


def authorize(
    actor: ActorContext,
    action: Action,
    target_tenant_id: int | None,
    target_role: UserRole | None = None,
    *,
    target_user_id: int | None = None,
) -> Decision:
    """
    Decide whether *actor* may perform *action* against *target_tenant_id*.

    ``target_role`` is the role being assigned by a user update (None when
    the role is untouched); ``target_user_id`` identifies the user record
    being changed so self role changes can be detected.
    """
    if actor.is_super_admin:
        return Allow()

    if action in SUPER_ADMIN_ONLY:
        return Deny("only super_admin may manage tenants")

    if actor.tenant_id is None or actor.tenant_id != target_tenant_id:
        return Deny(CROSS_TENANT_REASON)

    if action in TENANT_ADMIN_REQUIRED and not role_at_least(actor.role, UserRole.TENANT_ADMIN):
        return Deny(f"role '{actor.role.value}' may not perform {action.value}")

    if (
        action == Action.USER_UPDATE
        and target_role is not None
        and target_role != actor.role
        and target_user_id is not None
        and target_user_id == actor.user_id
    ):
        return Deny(SELF_ROLE_CHANGE_REASON)

    return Allow()


def require(
    actor: ActorContext,
    action: Action,
    target_tenant_id: int | None,
    target_role: UserRole | None = None,
    *,
    target_user_id: int | None = None,
) -> None:
    """Raise a ForbiddenError unless ``authorize`` allows the action."""
    decision = authorize(actor, action, target_tenant_id, target_role, target_user_id=target_user_id)
    if isinstance(decision, Deny):
        if decision.is_cross_tenant:
            raise CrossTenantError(decision.reason)
        raise ForbiddenError(decision.reason, details={"action": action.value})
