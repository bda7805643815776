"""
Role Constants

The three-tier role hierarchy used for tenant-scoped authorization.
"""

from enum import Enum


class UserRole(str, Enum):
    """Enumeration of role names in the system."""

    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    USER = "user"


# Default role for users created inside a tenant
DEFAULT_ROLE = UserRole.USER

# Role hierarchy (higher number = more permissions)
ROLE_HIERARCHY = {
    UserRole.USER: 1,
    UserRole.TENANT_ADMIN: 2,
    UserRole.SUPER_ADMIN: 3,
}


def role_at_least(role: str, required: str) -> bool:
    """
    Check if role meets or exceeds required in the hierarchy.

    Unknown roles rank below every known role.
    """
    try:
        level = ROLE_HIERARCHY[UserRole(role)]
    except ValueError:
        level = 0
    return level >= ROLE_HIERARCHY[UserRole(required)]
