"""
Security utilities for authentication.
Issues and validates the bearer JWTs that identify the calling user.
"""
import jwt
from datetime import timedelta
from typing import Optional, Dict, Any

from marketchat.config import settings
from marketchat.core.exceptions import NotAuthenticatedError
from marketchat.utils.datetime_utils import utc_now


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token

    Example:
        ```python
        token = create_access_token(
            data={"sub": user_id},
            expires_delta=timedelta(hours=24)
        )
        ```
    """
    to_encode = data.copy()
    issued_at = utc_now()

    if expires_delta:
        expire = issued_at + expires_delta
    else:
        expire = issued_at + timedelta(hours=settings.jwt_expiration_hours)

    to_encode.update({"exp": expire, "iat": issued_at})

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        NotAuthenticatedError: If token is invalid, expired, or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise NotAuthenticatedError("Token has expired")
    except jwt.InvalidTokenError:
        raise NotAuthenticatedError("Invalid token")

    if not payload.get("sub"):
        raise NotAuthenticatedError("Token has no subject")
    return payload


def extract_token_from_header(authorization: str) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        authorization: Authorization header value (e.g., "Bearer <token>")

    Returns:
        Extracted token

    Raises:
        NotAuthenticatedError: If header is missing or malformed
    """
    if not authorization:
        raise NotAuthenticatedError("Missing authorization header")

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise NotAuthenticatedError("Invalid authorization header format")

    return parts[1]
