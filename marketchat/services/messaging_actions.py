"""
UI-facing messaging actions.

Each action authenticates the caller, runs one unit of work against the
components and returns a tagged ``ActionSuccess``/``ActionFailure`` instead
of raising. Successful mutations are committed here; any failure rolls the
session back.
"""
import logging
from typing import Any, Awaitable, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.exceptions import MessagingError, NotAuthenticatedError, StorageError
from marketchat.schemas.conversation import (
    ConversationCreated,
    ConversationDetail,
    ConversationSummary,
    MarkReadResult,
)
from marketchat.schemas.message import MessageResponse
from marketchat.schemas.result import ActionFailure, ActionResult, ActionSuccess
from marketchat.services.conversation_service import ConversationService
from marketchat.services.inbox_service import InboxService
from marketchat.services.message_service import MessageService
from marketchat.services.read_receipt_service import ReadReceiptService
from marketchat.utils.datetime_utils import Clock, utc_now
from marketchat.utils.validators import validate_uuid

logger = logging.getLogger(__name__)


class MessagingActions:
    """Action surface for one authenticated (or anonymous) caller."""

    def __init__(
        self,
        db: AsyncSession,
        user_id: Optional[str],
        config: Optional[Settings] = None,
        clock: Clock = utc_now
    ):
        self.db = db
        self.user_id = user_id
        self.settings = config or default_settings
        self.conversations = ConversationService(db, self.settings, clock)
        self.messages = MessageService(db, self.settings, clock)
        self.receipts = ReadReceiptService(db, clock)
        self.inbox = InboxService(db, self.settings)

    async def _run(
        self,
        action: str,
        operation: Callable[[str], Awaitable[Any]],
        commit: bool = False
    ) -> ActionResult:
        if self.user_id is None:
            error = NotAuthenticatedError()
            logger.warning("%s rejected: %s", action, error.kind.value)
            return ActionFailure.from_error(error)

        try:
            data = await operation(self.user_id)
            if commit:
                await self.db.commit()
        except MessagingError as e:
            await self.db.rollback()
            logger.warning(
                "%s failed for user %s: %s (%s)",
                action, self.user_id, e.kind.value, e.message,
            )
            return ActionFailure.from_error(e)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("%s could not be committed for user %s", action, self.user_id)
            return ActionFailure.from_error(StorageError())

        return ActionSuccess(data=data)

    async def create_or_get_conversation(self, listing_id: str) -> ActionResult:
        """Open the caller's conversation about a listing, or return the existing one."""

        async def operation(user_id: str) -> ConversationCreated:
            conversation_id = await self.conversations.get_or_create(
                validate_uuid(listing_id, "listing_id"), user_id
            )
            return ConversationCreated(conversation_id=conversation_id)

        return await self._run("create_or_get_conversation", operation, commit=True)

    async def send_message(self, conversation_id: str, body: str) -> ActionResult:
        """Post a message as the caller."""

        async def operation(user_id: str) -> MessageResponse:
            message = await self.messages.send(
                validate_uuid(conversation_id, "conversation_id"), user_id, body
            )
            return MessageResponse.from_message(message)

        return await self._run("send_message", operation, commit=True)

    async def edit_message(self, message_id: str, body: str) -> ActionResult:
        """Edit one of the caller's messages."""

        async def operation(user_id: str) -> MessageResponse:
            message = await self.messages.edit(
                validate_uuid(message_id, "message_id"), user_id, body
            )
            return MessageResponse.from_message(message)

        return await self._run("edit_message", operation, commit=True)

    async def delete_message(self, message_id: str) -> ActionResult:
        """Soft-delete one of the caller's messages."""

        async def operation(user_id: str) -> MessageResponse:
            message = await self.messages.soft_delete(
                validate_uuid(message_id, "message_id"), user_id
            )
            return MessageResponse.from_message(message)

        return await self._run("delete_message", operation, commit=True)

    async def mark_read(self, conversation_id: str) -> ActionResult:
        """Mark everything the counterpart sent in a conversation as read."""

        async def operation(user_id: str) -> MarkReadResult:
            cid = validate_uuid(conversation_id, "conversation_id")
            await self.conversations.require_participant(cid, user_id)
            marked = await self.receipts.mark_conversation_read(cid, user_id)
            return MarkReadResult(marked=marked)

        return await self._run("mark_read", operation, commit=True)

    async def get_inbox(self) -> ActionResult:
        """List the caller's conversations."""

        async def operation(user_id: str) -> List[ConversationSummary]:
            return await self.inbox.get_inbox(user_id)

        return await self._run("get_inbox", operation)

    async def get_conversation(self, conversation_id: str) -> ActionResult:
        """Open a conversation: its summary plus the full message thread."""

        async def operation(user_id: str) -> ConversationDetail:
            cid = validate_uuid(conversation_id, "conversation_id")
            summary = await self.inbox.get_summary(cid, user_id)
            messages = await self.messages.list_conversation_messages(cid, user_id)
            return ConversationDetail(
                conversation=summary,
                messages=messages,
                current_user_id=user_id,
            )

        return await self._run("get_conversation", operation)
