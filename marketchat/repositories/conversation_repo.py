"""
Conversation repository for database operations.
Handles conversation identity, participant checks and inbox listing.
"""
import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, and_, or_, desc, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.models.conversation import Conversation, ConversationStatus
from marketchat.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

KEY_CONSTRAINT = "uq_conversation_listing_buyer_seller"

# SQLite reports the violated columns instead of the constraint name
_SQLITE_KEY_VIOLATION = "UNIQUE constraint failed: conversations.listing_id"


def is_key_conflict(exc: IntegrityError) -> bool:
    """True if ``exc`` is a violation of the conversation key, not of some other constraint."""
    detail = str(exc.orig)
    constraint = getattr(exc.orig.__cause__, "constraint_name", None)
    return (
        constraint == KEY_CONSTRAINT
        or KEY_CONSTRAINT in detail
        or _SQLITE_KEY_VIOLATION in detail
    )


def _participant_filter(user_id: str):
    return or_(Conversation.buyer_id == user_id, Conversation.seller_id == user_id)


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    async def get_by_key(
        self, listing_id: str, buyer_id: str, seller_id: str
    ) -> Optional[Conversation]:
        """
        Find the conversation for a (listing, buyer, seller) triple.

        Args:
            listing_id: Listing ID
            buyer_id: Buyer user ID
            seller_id: Seller user ID

        Returns:
            Conversation or None
        """
        result = await self.db.execute(
            select(Conversation).where(
                and_(
                    Conversation.listing_id == listing_id,
                    Conversation.buyer_id == buyer_id,
                    Conversation.seller_id == seller_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def try_create(
        self,
        listing_id: str,
        buyer_id: str,
        seller_id: str,
        now: datetime
    ) -> Optional[Conversation]:
        """
        Insert a new open conversation inside a savepoint.

        A violation of the conversation key means another request created the
        same key first; the savepoint is rolled back and None is returned so
        the caller can re-fetch. Any other integrity failure (a missing user,
        buyer equal to seller) propagates.

        Returns:
            Created conversation, or None if the key already exists
        """
        conversation = Conversation(
            listing_id=listing_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            status=ConversationStatus.OPEN,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(conversation)
                await self.db.flush()
        except IntegrityError as e:
            if not is_key_conflict(e):
                raise
            logger.warning(
                "Conversation key (%s, %s, %s) already taken",
                listing_id, buyer_id, seller_id,
            )
            return None
        return conversation

    async def get_for_participant(
        self, conversation_id: str, user_id: str
    ) -> Optional[Conversation]:
        """
        Get a conversation only if ``user_id`` is its buyer or seller.

        Returns:
            Conversation or None (missing and not-visible look the same)
        """
        result = await self.db.execute(
            select(Conversation).where(
                and_(
                    Conversation.id == conversation_id,
                    _participant_filter(user_id),
                )
            )
        )
        return result.scalar_one_or_none()

    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        """Check whether ``user_id`` is the buyer or seller of a conversation."""
        result = await self.db.execute(
            select(Conversation.id).where(
                and_(
                    Conversation.id == conversation_id,
                    _participant_filter(user_id),
                )
            )
        )
        return result.scalar_one_or_none() is not None

    async def list_for_user(self, user_id: str) -> List[Conversation]:
        """
        Get every conversation where the user is buyer or seller.

        Ordered by most recent activity; conversations without messages sort last.

        Args:
            user_id: User ID

        Returns:
            List of conversations
        """
        result = await self.db.execute(
            select(Conversation)
            .where(_participant_filter(user_id))
            .order_by(
                Conversation.last_message_at.desc().nulls_last(),
                desc(Conversation.created_at),
                desc(Conversation.id),
            )
        )
        return list(result.scalars().all())

    async def touch_last_message(self, conversation_id: str, at: datetime) -> None:
        """Record that a message was added to the conversation at ``at``."""
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_message_at=at, updated_at=at)
        )
        await self.db.flush()
