"""
Conversation service containing business logic for conversation identity.
Owns the (listing, buyer, seller) -> conversation mapping and participant checks.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.exceptions import (
    ListingNotFoundError,
    NotAuthorizedError,
    NotFoundError,
    OwnListingError,
    StorageError,
    translate_storage_errors,
)
from marketchat.models.conversation import Conversation
from marketchat.repositories.conversation_repo import ConversationRepository
from marketchat.repositories.listing_repo import ListingRepository
from marketchat.utils.datetime_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for conversation lookup, creation and access checks."""

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        clock: Clock = utc_now
    ):
        """
        Initialize conversation service.

        Args:
            db: Database session
            config: Settings override (defaults to the global settings)
            clock: Source of "now"
        """
        self.db = db
        self.settings = config or default_settings
        self.clock = clock
        self.conversation_repo = ConversationRepository(db)
        self.listing_repo = ListingRepository(db)

    @translate_storage_errors
    async def get_or_create(self, listing_id: str, buyer_id: str) -> str:
        """
        Return the conversation between ``buyer_id`` and the listing's seller.

        Idempotent: repeated calls for the same key return the same ID. When two
        callers race to create the same key, the loser's insert trips the unique
        constraint and it re-fetches the winner's row.

        Args:
            listing_id: Listing being asked about
            buyer_id: User opening the conversation

        Returns:
            Conversation ID

        Raises:
            ListingNotFoundError: If the listing does not exist
            OwnListingError: If the buyer is the listing's seller
            StorageError: If the key stays contended after all attempts
        """
        ownership = await self.listing_repo.get_seller_and_status(listing_id)
        if ownership is None:
            raise ListingNotFoundError()

        seller_id = ownership.seller_id
        if seller_id == buyer_id:
            raise OwnListingError()

        attempts = self.settings.conversation_create_max_attempts
        for attempt in range(1, attempts + 1):
            existing = await self.conversation_repo.get_by_key(listing_id, buyer_id, seller_id)
            if existing:
                if attempt > 1:
                    logger.warning(
                        "Conversation create race on listing %s resolved by re-fetch (attempt %d)",
                        listing_id, attempt,
                    )
                return existing.id

            created = await self.conversation_repo.try_create(
                listing_id, buyer_id, seller_id, now=self.clock()
            )
            if created:
                logger.info(
                    "Created conversation %s on listing %s (buyer %s, seller %s)",
                    created.id, listing_id, buyer_id, seller_id,
                )
                return created.id

        logger.error(
            "Could not resolve conversation for listing %s and buyer %s after %d attempts",
            listing_id, buyer_id, attempts,
        )
        raise StorageError()

    @translate_storage_errors
    async def check_access(self, conversation_id: str, user_id: str) -> bool:
        """True iff ``user_id`` is the buyer or seller of the conversation."""
        return await self.conversation_repo.is_participant(conversation_id, user_id)

    @translate_storage_errors
    async def require_participant(self, conversation_id: str, user_id: str) -> Conversation:
        """
        Load a conversation the user is about to write into.

        Raises:
            NotFoundError: If the conversation does not exist
            NotAuthorizedError: If the user is not a participant
        """
        conversation = await self.conversation_repo.get(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", resource="conversation")
        if not conversation.has_participant(user_id):
            raise NotAuthorizedError()
        return conversation
