"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for caller identity and the messaging actions.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.core.database import get_db
from marketchat.core.exceptions import NotAuthenticatedError
from marketchat.core.security import decode_access_token, extract_token_from_header
from marketchat.services.messaging_actions import MessagingActions

logger = logging.getLogger(__name__)


async def get_current_user_id(
    authorization: Optional[str] = Header(None)
) -> str:
    """
    Dependency to get the authenticated caller's user ID.

    Args:
        authorization: Authorization header containing Bearer token

    Returns:
        The token's ``sub`` claim

    Raises:
        NotAuthenticatedError: If the header is missing, malformed, or the
            token is invalid or expired
    """
    token = extract_token_from_header(authorization)
    return str(decode_access_token(token)["sub"])


async def get_optional_user_id(
    authorization: Optional[str] = Header(None)
) -> Optional[str]:
    """
    Dependency to optionally get the caller's user ID.

    Similar to get_current_user_id but returns None instead of raising, so
    the action surface reports ``not_authenticated`` itself.
    """
    if not authorization:
        return None

    try:
        return await get_current_user_id(authorization)
    except NotAuthenticatedError as e:
        logger.info("Rejected bearer token: %s", e.message)
        return None


async def get_messaging_actions(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
) -> MessagingActions:
    """Dependency building the action surface for the current caller."""
    return MessagingActions(db, user_id)
