"""
Tagged operation results

Operations hand back ``Ok(data)`` or ``Err(kind, message)`` instead of
raising, so callers outside the HTTP layer can branch on a stable error
kind. ``as_operation`` turns a raising service coroutine into one that
returns a Result.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

import pydantic
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tracker.exceptions import ErrorKind, InternalError, TrackerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERNAL_MESSAGE = InternalError().message


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    ok = True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int = 500
    ok = False

    @classmethod
    def from_exception(cls, exc: TrackerError) -> "Err":
        return cls(kind=exc.kind, message=exc.message, details=dict(exc.details), status_code=exc.status_code)


Result = Union[Ok[T], Err]


def as_operation(service: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Result]]:
    """Wrap a service coroutine so it returns Ok/Err instead of raising."""

    @functools.wraps(service)
    async def operation(*args: Any, **kwargs: Any) -> Result:
        try:
            return Ok(await service(*args, **kwargs))
        except TrackerError as exc:
            return Err.from_exception(exc)
        except pydantic.ValidationError as exc:
            return Err(
                kind=ErrorKind.VALIDATION,
                message="Invalid request payload",
                details={"errors": exc.errors(include_url=False, include_context=False)},
                status_code=422,
            )
        except IntegrityError:
            logger.exception("Integrity error in %s", service.__name__)
            return Err(kind=ErrorKind.CONFLICT, message="Resource conflicts with an existing record", status_code=409)
        except SQLAlchemyError:
            logger.exception("Storage failure in %s", service.__name__)
            return Err(kind=ErrorKind.INTERNAL, message=INTERNAL_MESSAGE, status_code=500)

    return operation
