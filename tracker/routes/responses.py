from typing import Any

from fastapi import Request
from pydantic import BaseModel

from tracker.core.result import Err, Result
from tracker.exception_handlers import err_response


def render(result: Result, request: Request, schema: type[BaseModel] | None = None, many: bool = False) -> Any:
    """Turn an operation result into a response body, or an error response."""
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    if schema is None:
        return result.data
    if many:
        return [schema.model_validate(item) for item in result.data]
    return schema.model_validate(result.data)
