"""
Message service containing business logic for message operations.
Owns message persistence, the edit window and soft deletion.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.exceptions import (
    EditWindowExpiredError,
    NotAuthorizedError,
    NotFoundError,
    translate_storage_errors,
)
from marketchat.models.message import Message
from marketchat.repositories.conversation_repo import ConversationRepository
from marketchat.repositories.message_repo import MessageReadRepository, MessageRepository
from marketchat.schemas.message import MessageView
from marketchat.services.conversation_service import ConversationService
from marketchat.services.rate_limiter import MessageRateLimiter
from marketchat.services.user_directory import UserDirectory
from marketchat.utils.datetime_utils import Clock, ensure_utc, utc_now
from marketchat.utils.validators import normalize_message_body

logger = logging.getLogger(__name__)


class MessageService:
    """Service for message operations."""

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        clock: Clock = utc_now
    ):
        """
        Initialize message service.

        Args:
            db: Database session
            config: Settings override (defaults to the global settings)
            clock: Source of "now"
        """
        self.db = db
        self.settings = config or default_settings
        self.clock = clock
        self.message_repo = MessageRepository(db)
        self.read_repo = MessageReadRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.conversations = ConversationService(db, self.settings, clock)
        self.rate_limiter = MessageRateLimiter(db, self.settings, clock)
        self.directory = UserDirectory(db, self.settings)

    @property
    def edit_window(self) -> timedelta:
        return timedelta(seconds=self.settings.message_edit_window_seconds)

    @translate_storage_errors
    async def send(self, conversation_id: str, sender_id: str, body: str) -> Message:
        """
        Post a message into a conversation.

        The message insert and the conversation's ``last_message_at`` bump are
        flushed in the same transaction; the caller commits both or neither.

        Args:
            conversation_id: Conversation ID
            sender_id: Posting user (must be buyer or seller)
            body: Raw body; trimmed before storing

        Returns:
            Created message

        Raises:
            NotFoundError: If the conversation does not exist
            NotAuthorizedError: If the sender is not a participant
            ValidationError: If the trimmed body is empty or too long
            RateLimitExceeded: If the sender is over the per-window cap
        """
        await self.conversations.require_participant(conversation_id, sender_id)
        body = normalize_message_body(body, self.settings.message_max_length)
        await self.rate_limiter.check_and_record(conversation_id, sender_id)

        now = self.clock()
        message = await self.message_repo.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            body=body,
            created_at=now,
        )
        await self.conversation_repo.touch_last_message(conversation_id, now)
        return message

    async def _get_own_live_message(self, message_id: str, user_id: str) -> Message:
        message = await self.message_repo.get(message_id)
        if not message:
            raise NotFoundError("Message not found", resource="message")

        if message.sender_id != user_id:
            raise NotAuthorizedError("You can only change your own messages")

        # Deletion is terminal
        if message.is_deleted:
            raise NotAuthorizedError("Message has been deleted")

        return message

    @translate_storage_errors
    async def edit(self, message_id: str, user_id: str, new_body: str) -> Message:
        """
        Replace a message's body within the edit window.

        The window is inclusive: a message exactly ``edit_window`` old can
        still be edited.

        Raises:
            NotFoundError: If the message does not exist
            NotAuthorizedError: If the user is not the sender or the message is deleted
            EditWindowExpiredError: If the window has closed
            ValidationError: If the trimmed body is empty or too long
        """
        message = await self._get_own_live_message(message_id, user_id)

        now = self.clock()
        if now - ensure_utc(message.created_at) > self.edit_window:
            raise EditWindowExpiredError()

        message.body = normalize_message_body(new_body, self.settings.message_max_length)
        message.edited_at = now
        await self.db.flush()

        logger.info("Message %s edited by %s", message_id, user_id)
        return message

    @translate_storage_errors
    async def soft_delete(self, message_id: str, user_id: str) -> Message:
        """
        Mark a message deleted without removing its row.

        Raises:
            NotFoundError: If the message does not exist
            NotAuthorizedError: If the user is not the sender or it is already deleted
        """
        message = await self._get_own_live_message(message_id, user_id)

        message.deleted_at = self.clock()
        await self.db.flush()

        logger.info("Message %s deleted by %s", message_id, user_id)
        return message

    @translate_storage_errors
    async def list_conversation_messages(
        self,
        conversation_id: str,
        viewer_id: str
    ) -> List[MessageView]:
        """
        Render a conversation's full thread for one of its participants.

        Sender names and the viewer's receipts are each loaded with one
        batched query, independent of the number of messages.

        Args:
            conversation_id: Conversation ID
            viewer_id: Participant viewing the thread

        Returns:
            Messages oldest first, deleted ones with a placeholder body

        Raises:
            NotFoundError: If the conversation is missing or not visible to the viewer
        """
        if not await self.conversations.check_access(conversation_id, viewer_id):
            raise NotFoundError("Conversation not found", resource="conversation")

        messages = await self.message_repo.list_for_conversation(conversation_id)
        if not messages:
            return []

        senders = await self.directory.get_entries(m.sender_id for m in messages)
        read_ids = await self.read_repo.read_message_ids(viewer_id, [m.id for m in messages])

        return [
            MessageView.from_message(
                message,
                sender_name=senders[message.sender_id].display_name,
                sender_avatar_url=senders[message.sender_id].avatar_url,
                is_mine=message.sender_id == viewer_id,
                is_read=message.id in read_ids,
            )
            for message in messages
        ]
