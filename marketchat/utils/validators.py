"""
Custom validators for application data.
Provides reusable validation functions for the services and messaging actions.
"""
from uuid import UUID

from marketchat.core.exceptions import ValidationError


def validate_uuid(value: str, field_name: str = "ID") -> str:
    """
    Validate that a string is a UUID and return its canonical form.

    Args:
        value: String value to validate
        field_name: Name of the field for error messages

    Returns:
        Lower-case hyphenated UUID string

    Raises:
        ValidationError: If value is not a valid UUID
    """
    try:
        return str(UUID(str(value)))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"Invalid {field_name}", field=field_name)


def normalize_message_body(body: str | None, max_length: int) -> str:
    """
    Trim a message body and enforce its length bounds.

    Args:
        body: Raw body as typed by the user
        max_length: Maximum characters allowed after trimming

    Returns:
        The trimmed body

    Raises:
        ValidationError: If the trimmed body is empty or too long
    """
    trimmed = (body or "").strip()
    if not trimmed:
        raise ValidationError("Message cannot be empty", field="body")
    if len(trimmed) > max_length:
        raise ValidationError(
            f"Message must be {max_length} characters or less",
            field="body",
        )
    return trimmed
