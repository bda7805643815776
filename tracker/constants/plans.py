"""
Subscription plan constants

Each plan fixes the tenant's user and project ceilings.
"""

from enum import Enum


class SubscriptionPlan(str, Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


DEFAULT_PLAN = SubscriptionPlan.FREE

PLAN_LIMITS: dict[SubscriptionPlan, dict[str, int]] = {
    SubscriptionPlan.FREE: {"max_users": 5, "max_projects": 3},
    SubscriptionPlan.PRO: {"max_users": 25, "max_projects": 15},
    SubscriptionPlan.ENTERPRISE: {"max_users": 100, "max_projects": 50},
}


def limits_for(plan: str) -> dict[str, int]:
    """Return a copy of the quota ceilings for a plan name."""
    return dict(PLAN_LIMITS[SubscriptionPlan(plan)])
