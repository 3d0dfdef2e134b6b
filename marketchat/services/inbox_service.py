"""
Inbox service.
Builds conversation summaries with a fixed number of batched queries.
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.exceptions import NotFoundError, translate_storage_errors
from marketchat.models.conversation import Conversation
from marketchat.models.message import Message
from marketchat.repositories.conversation_repo import ConversationRepository
from marketchat.repositories.listing_repo import ListingRepository, ListingSummary
from marketchat.repositories.message_repo import MessageRepository
from marketchat.schemas.conversation import ConversationSummary
from marketchat.services.read_receipt_service import ReadReceiptService
from marketchat.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class InboxService:
    """Service aggregating a user's conversations into renderable summaries."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.settings = config or default_settings
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.listing_repo = ListingRepository(db)
        self.receipts = ReadReceiptService(db)
        self.directory = UserDirectory(db, self.settings)

    @translate_storage_errors
    async def get_inbox(self, user_id: str) -> List[ConversationSummary]:
        """
        Get every conversation the user is part of, most recently active first.

        Runs one query per concern (conversations, listing titles, listing
        images, names, last messages, unread candidates, receipts) no matter
        how many conversations there are. Conversations without messages sort
        last.

        Args:
            user_id: Inbox owner

        Returns:
            One summary per conversation
        """
        conversations = await self.conversation_repo.list_for_user(user_id)
        if not conversations:
            return []

        conversation_ids = [c.id for c in conversations]
        listings = await self.listing_repo.get_summaries(c.listing_id for c in conversations)
        names = await self.directory.get_display_names(
            c.other_participant_id(user_id) for c in conversations
        )
        last_messages = await self.message_repo.latest_visible_by_conversation(conversation_ids)
        unread = await self.receipts.unread_counts(conversation_ids, user_id)

        return [
            self._summarize(
                conversation,
                user_id,
                listing=listings.get(conversation.listing_id),
                other_name=names[conversation.other_participant_id(user_id)],
                last_message=last_messages.get(conversation.id),
                unread_count=unread[conversation.id],
            )
            for conversation in conversations
        ]

    @translate_storage_errors
    async def get_summary(self, conversation_id: str, user_id: str) -> ConversationSummary:
        """
        Summarize a single conversation exactly as its inbox row would read.

        Raises:
            NotFoundError: If the conversation is missing or the user is not a participant
        """
        conversation = await self.conversation_repo.get_for_participant(conversation_id, user_id)
        if not conversation:
            raise NotFoundError("Conversation not found", resource="conversation")

        listings = await self.listing_repo.get_summaries([conversation.listing_id])
        other_id = conversation.other_participant_id(user_id)
        last_messages = await self.message_repo.latest_visible_by_conversation([conversation.id])

        return self._summarize(
            conversation,
            user_id,
            listing=listings.get(conversation.listing_id),
            other_name=await self.directory.get_display_name(other_id),
            last_message=last_messages.get(conversation.id),
            unread_count=await self.receipts.unread_count(conversation.id, user_id),
        )

    @staticmethod
    def _summarize(
        conversation: Conversation,
        user_id: str,
        listing: Optional[ListingSummary],
        other_name: str,
        last_message: Optional[Message],
        unread_count: int
    ) -> ConversationSummary:
        if listing is None:
            logger.warning(
                "Listing %s for conversation %s no longer exists",
                conversation.listing_id, conversation.id,
            )

        return ConversationSummary(
            id=conversation.id,
            listing_id=conversation.listing_id,
            buyer_id=conversation.buyer_id,
            seller_id=conversation.seller_id,
            status=conversation.status,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            last_message_at=conversation.last_message_at,
            listing_title=listing.title if listing else None,
            listing_image_url=listing.image_url if listing else None,
            other_participant_id=conversation.other_participant_id(user_id),
            other_participant_name=other_name,
            last_message_body=last_message.body if last_message else None,
            unread_count=unread_count,
        )
