"""Constants package for the tracker."""

from .plans import DEFAULT_PLAN, PLAN_LIMITS, SubscriptionPlan, limits_for
from .roles import DEFAULT_ROLE, ROLE_HIERARCHY, UserRole, role_at_least

__all__ = [
    # Role constants
    "UserRole",
    "DEFAULT_ROLE",
    "ROLE_HIERARCHY",
    "role_at_least",
    # Plan constants
    "SubscriptionPlan",
    "DEFAULT_PLAN",
    "PLAN_LIMITS",
    "limits_for",
]
