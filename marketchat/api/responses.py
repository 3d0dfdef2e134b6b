"""
Translate action results into HTTP responses.
"""
from fastapi import status
from fastapi.responses import JSONResponse

from marketchat.schemas.result import ActionFailure, ActionResult


def render_result(result: ActionResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Serialize an action result, using the error kind's status code on failure."""
    if isinstance(result, ActionFailure):
        return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))
    return JSONResponse(status_code=success_status, content=result.model_dump(mode="json"))
