"""
Messaging error taxonomy.

Every failure that leaves a component carries a stable ``ErrorKind`` so the
UI-facing surface can report it without leaking storage-layer detail.
"""
import functools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Stable error kinds shared with API clients."""

    NOT_AUTHENTICATED = "not_authenticated"
    NOT_FOUND = "not_found"
    LISTING_NOT_FOUND = "listing_not_found"
    NOT_AUTHORIZED = "not_authorized"
    OWN_LISTING = "own_listing"
    VALIDATION = "validation_error"
    EDIT_WINDOW_EXPIRED = "edit_window_expired"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    STORAGE = "storage_error"


class MessagingError(Exception):
    """
    Base exception for messaging failures.
    All domain exceptions inherit from this class.
    """

    kind: ErrorKind = ErrorKind.STORAGE
    status_code: int = 500
    default_message: str = "Something went wrong, please try again"

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary"""
        error: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.field:
            error["field"] = self.field
        if self.metadata:
            error["metadata"] = self.metadata
        return error


class NotAuthenticatedError(MessagingError):
    """No caller identity"""

    kind = ErrorKind.NOT_AUTHENTICATED
    status_code = 401
    default_message = "Please sign in"


class NotFoundError(MessagingError):
    """Conversation or message missing, or invisible to the caller"""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Not found"

    def __init__(self, message: str | None = None, resource: str | None = None):
        super().__init__(message, metadata={"resource": resource} if resource else None)


class ListingNotFoundError(NotFoundError):
    """Listing does not exist"""

    kind = ErrorKind.LISTING_NOT_FOUND
    default_message = "Listing not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, resource="listing")


class NotAuthorizedError(MessagingError):
    """Caller is not a participant, or not the message's sender"""

    kind = ErrorKind.NOT_AUTHORIZED
    status_code = 403
    default_message = "Not authorized"


class OwnListingError(MessagingError):
    """Seller attempting to open a conversation on their own listing"""

    kind = ErrorKind.OWN_LISTING
    status_code = 400
    default_message = "Cannot message own listing"


class ValidationError(MessagingError):
    """Message body empty or over length"""

    kind = ErrorKind.VALIDATION
    status_code = 422
    default_message = "Please check your input"


class EditWindowExpiredError(MessagingError):
    """Edit attempted after the edit window closed"""

    kind = ErrorKind.EDIT_WINDOW_EXPIRED
    status_code = 422
    default_message = "Edit window expired"


class RateLimitExceeded(MessagingError):
    """Sender over the rolling message cap"""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    status_code = 429

    def __init__(self, limit: int, retry_after: int):
        super().__init__(
            f"Rate limit exceeded. Maximum {limit} messages per minute.",
            metadata={"retry_after": retry_after},
        )


class StorageError(MessagingError):
    """Persistence collaborator failed"""

    kind = ErrorKind.STORAGE
    status_code = 503
    default_message = "Something went wrong, please try again"


def translate_storage_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Re-wrap SQLAlchemy failures raised by a component operation as StorageError.

    MessagingError subclasses pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception("Storage failure in %s", func.__qualname__)
            raise StorageError() from e

    return wrapper
