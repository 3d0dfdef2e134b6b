"""
Tagged result envelope returned by the UI-facing action surface.
"""
from typing import Any, Dict, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from marketchat.core.exceptions import ErrorKind, MessagingError

T = TypeVar("T")


class ErrorDetail(BaseModel):
    kind: ErrorKind
    message: str
    field: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ActionSuccess(BaseModel, Generic[T]):
    success: Literal[True] = True
    data: T


class ActionFailure(BaseModel):
    success: Literal[False] = False
    error: ErrorDetail
    status_code: int = Field(default=500, exclude=True)

    @classmethod
    def from_error(cls, error: MessagingError) -> "ActionFailure":
        """Build a failure result from a domain exception."""
        return cls(
            error=ErrorDetail(
                kind=error.kind,
                message=error.message,
                field=error.field,
                metadata=error.metadata,
            ),
            status_code=error.status_code,
        )


ActionResult = Union[ActionSuccess[T], ActionFailure]
