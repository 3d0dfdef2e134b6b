"""
Exception handlers for FastAPI.
Renders every failure in the same envelope the action surface uses.
"""
import logging
import uuid

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marketchat.core.exceptions import ErrorKind

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


def error_response(status_code: int, error: dict, request_id: str) -> JSONResponse:
    """Build the ``{"success": false, "error": ...}`` envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers={"X-Request-ID": request_id},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body and path validation errors."""
    request_id = _request_id(request)
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ())]
    if loc and loc[0] in ("body", "path", "query", "header"):
        loc = loc[1:]

    error = {
        "kind": ErrorKind.VALIDATION.value,
        "message": str(first.get("msg", "Invalid request")).removeprefix("Value error, "),
    }
    if loc:
        error["field"] = ".".join(loc)

    logger.info(
        "Validation error on %s %s: %s [request_id=%s]",
        request.method, request.url.path, error["message"], request_id,
    )
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, error, request_id)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = _request_id(request)
    logger.exception(
        "Unhandled error on %s %s [request_id=%s]",
        request.method, request.url.path, request_id,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"kind": "server_error", "message": "Something went wrong, please try again"},
        request_id,
    )
