"""
Exception classes for the tracker core

Every domain check raises one of these before the open transaction commits.
Each error carries a stable ``kind`` (used by callers and the HTTP layer to
branch) and a human-readable message.
"""

import enum
from typing import Any

from fastapi import status


class ErrorKind(str, enum.Enum):
    """Stable error categories exposed to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INTERNAL = "internal"
    UNAUTHENTICATED = "unauthenticated"


class TrackerError(Exception):
    """Base exception class for all tracker errors"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Validation
# ============================================================================


class ValidationError(TrackerError):
    """Raised when input is missing or malformed"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


# ============================================================================
# Not found
# ============================================================================


class NotFoundError(TrackerError):
    """Raised when an entity is missing or lives outside the caller's tenant"""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None, message: str | None = None):
        if message is None:
            message = f"{resource_type} not found"
            if resource_id is not None:
                message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


# ============================================================================
# Forbidden: authorization and invariant denials
# ============================================================================


class ForbiddenError(TrackerError):
    """Raised when an action is denied by authorization or a domain invariant"""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "You do not have permission to perform this action", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, details=details or {})


class CrossTenantError(ForbiddenError):
    """Raised when an actor touches an entity owned by another tenant"""

    def __init__(self, message: str = "cross-tenant access"):
        super().__init__(message=message, details={"reason": "cross_tenant"})


class QuotaExceededError(ForbiddenError):
    """Raised when a tenant has used every slot its plan allows"""

    def __init__(self, kind: str, limit: int, plan: str):
        super().__init__(
            message=f"{kind.capitalize()} limit reached ({limit} max for {plan} plan)",
            details={"reason": "quota_exceeded", "resource": kind, "limit": limit, "plan": plan},
        )
        self.limit = limit
        self.plan = plan


class LastAdminError(ForbiddenError):
    """Raised when a change would leave a tenant without an active tenant_admin"""

    def __init__(self, tenant_id: Any):
        super().__init__(
            message="last admin protection: a tenant must keep at least one active tenant_admin",
            details={"reason": "last_admin", "tenant_id": tenant_id},
        )


# ============================================================================
# Conflict
# ============================================================================


class ConflictError(TrackerError):
    """Raised when attempting to create a duplicate resource"""

    kind = ErrorKind.CONFLICT

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


# ============================================================================
# Internal
# ============================================================================


class InternalError(TrackerError):
    """Raised for storage or transaction failures; never leaks storage detail"""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


# ============================================================================
# Authentication (credential layer)
# ============================================================================


class AuthenticationError(TrackerError):
    """Raised when credentials or tokens cannot be verified"""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)
