"""
Global Exception Handlers

Centralized error rendering for the HTTP layer.

Error Response Format:
{
    "error": {
        "status_code": 403,
        "kind": "forbidden",
        "message": "Project limit reached (3 max for free plan)",
        "type": "Forbidden",
        "details": {"reason": "quota_exceeded", "limit": 3, "plan": "free"},
        "path": "/api/projects"
    }
}

``kind`` is the stable, machine-readable category shared with operation
results (``Err.kind``).
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tracker.core.result import Err
from tracker.exceptions import ErrorKind, TrackerError

logger = logging.getLogger(__name__)


def get_error_type(status_code: int) -> str:
    """Get a human-readable error type based on status code."""
    error_types = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
        422: "Validation Error",
        500: "Internal Server Error",
    }
    return error_types.get(status_code, "Error")


def kind_for_status(status_code: int) -> ErrorKind:
    return {
        400: ErrorKind.VALIDATION,
        401: ErrorKind.UNAUTHENTICATED,
        403: ErrorKind.FORBIDDEN,
        404: ErrorKind.NOT_FOUND,
        409: ErrorKind.CONFLICT,
        422: ErrorKind.VALIDATION,
    }.get(status_code, ErrorKind.INTERNAL)


def create_error_response(
    status_code: int,
    message: str,
    kind: ErrorKind | str | None = None,
    details: dict[str, Any] | None = None,
    path: str | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    kind = kind or kind_for_status(status_code)
    error_response: dict[str, Any] = {
        "error": {
            "status_code": status_code,
            "kind": kind.value if isinstance(kind, ErrorKind) else kind,
            "message": message,
            "type": get_error_type(status_code),
        }
    }

    if details:
        error_response["error"]["details"] = jsonable_encoder(details)

    if path:
        error_response["error"]["path"] = path

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=error_response, headers=headers)


def err_response(err: Err, path: str | None = None) -> JSONResponse:
    """Render an operation ``Err`` result."""
    return create_error_response(
        status_code=err.status_code,
        message=err.message,
        kind=err.kind,
        details=err.details or None,
        path=path,
    )


async def tracker_exception_handler(request: Request, exc: TrackerError) -> JSONResponse:
    """Handle errors raised outside an operation, e.g. by the auth dependency."""
    logger.warning(
        f"TrackerError: {exc.message}",
        extra={"status_code": exc.status_code, "kind": exc.kind.value, "path": request.url.path},
    )
    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        kind=exc.kind,
        details=exc.details or None,
        path=request.url.path,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        path=request.url.path,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request payload validation errors, including unknown enum values."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})

    logger.warning(f"Validation error on {request.url.path}", extra={"errors": errors})

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        kind=ErrorKind.VALIDATION,
        details={"validation_errors": errors},
        path=request.url.path,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An internal error occurred",
        kind=ErrorKind.INTERNAL,
        path=request.url.path,
    )


def register_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TrackerError, tracker_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
