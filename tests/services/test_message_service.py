"""
Unit tests for MessageService.
Tests sending, editing, soft deletion and thread rendering.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from marketchat.core.exceptions import (
    EditWindowExpiredError,
    NotAuthorizedError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from marketchat.models.base import generate_uuid
from marketchat.models.conversation import Conversation
from marketchat.models.message import Message
from marketchat.repositories.message_repo import MessageRepository
from marketchat.services.conversation_service import ConversationService
from marketchat.services.message_service import MessageService
from marketchat.services.read_receipt_service import ReadReceiptService
from marketchat.utils.datetime_utils import ensure_utc


@pytest.fixture
async def conversation_id(db_session, buyer, listing):
    return await ConversationService(db_session).get_or_create(listing.id, buyer.id)


class TestSendMessage:
    """Test message sending."""

    async def test_send_persists_trimmed_body(self, db_session, buyer, conversation_id, clock):
        """Test the stored body is trimmed and timestamped by the clock."""
        service = MessageService(db_session, clock=clock)

        message = await service.send(conversation_id, buyer.id, "  Is this still available?  ")

        assert message.body == "Is this still available?"
        assert message.sender_id == buyer.id
        assert ensure_utc(message.created_at) == clock.now
        assert message.edited_at is None
        assert message.deleted_at is None

    async def test_send_updates_last_message_at(self, db_session, buyer, conversation_id, clock):
        """Test the conversation's last activity moves with each message."""
        service = MessageService(db_session, clock=clock)

        await service.send(conversation_id, buyer.id, "first")
        clock.advance(minutes=5)
        await service.send(conversation_id, buyer.id, "second")

        result = await db_session.execute(
            select(Conversation.last_message_at).where(Conversation.id == conversation_id)
        )
        assert ensure_utc(result.scalar()) == clock.now

    async def test_body_length_boundaries(self, db_session, buyer, conversation_id):
        """Test 2000 characters are accepted and 2001 are rejected."""
        service = MessageService(db_session)

        message = await service.send(conversation_id, buyer.id, "a" * 2000)
        assert len(message.body) == 2000

        with pytest.raises(ValidationError) as exc_info:
            await service.send(conversation_id, buyer.id, "a" * 2001)
        assert exc_info.value.field == "body"

    async def test_length_is_measured_after_trimming(self, db_session, buyer, conversation_id):
        """Test surrounding whitespace does not count toward the limit."""
        service = MessageService(db_session)

        message = await service.send(conversation_id, buyer.id, "  " + "b" * 2000 + "\n")

        assert len(message.body) == 2000

    @pytest.mark.parametrize("body", ["", "   ", "\n\t "])
    async def test_blank_body_rejected(self, db_session, buyer, conversation_id, body):
        """Test empty and whitespace-only bodies are rejected without storing anything."""
        service = MessageService(db_session)

        with pytest.raises(ValidationError):
            await service.send(conversation_id, buyer.id, body)

        assert await MessageRepository(db_session).list_for_conversation(conversation_id) == []

    async def test_non_participant_cannot_send(self, db_session, stranger, conversation_id):
        """Test a user outside the conversation is refused."""
        service = MessageService(db_session)

        with pytest.raises(NotAuthorizedError):
            await service.send(conversation_id, stranger.id, "hello?")

    async def test_unknown_conversation(self, db_session, buyer):
        """Test sending into a missing conversation fails with NotFoundError."""
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.send(generate_uuid(), buyer.id, "hello?")

    async def test_storage_failure_is_translated(
        self, db_session, buyer, conversation_id, mocker
    ):
        """Test a database error surfaces as StorageError."""
        mocker.patch.object(
            MessageRepository,
            "create",
            mocker.AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))),
        )
        service = MessageService(db_session)

        with pytest.raises(StorageError) as exc_info:
            await service.send(conversation_id, buyer.id, "hello")

        assert exc_info.value.kind.value == "storage_error"


class TestEditMessage:
    """Test message editing and the edit window."""

    async def test_edit_updates_body_and_marks_edited(
        self, db_session, buyer, conversation_id, clock
    ):
        """Test a prompt edit changes the body and records edited_at."""
        service = MessageService(db_session, clock=clock)
        message = await service.send(conversation_id, buyer.id, "Price is 100")

        clock.advance(minutes=1)
        edited = await service.edit(message.id, buyer.id, "  Price is 90  ")

        assert edited.body == "Price is 90"
        assert ensure_utc(edited.edited_at) == clock.now

    @pytest.mark.parametrize("elapsed", [599, 600])
    async def test_edit_within_window(self, db_session, buyer, conversation_id, clock, elapsed):
        """Test edits at 9:59 and exactly 10:00 are allowed."""
        service = MessageService(db_session, clock=clock)
        message = await service.send(conversation_id, buyer.id, "original")

        clock.advance(seconds=elapsed)
        edited = await service.edit(message.id, buyer.id, "edited")

        assert edited.body == "edited"

    async def test_edit_after_window(self, db_session, buyer, conversation_id, clock):
        """Test an edit at 10:01 is rejected and the body is unchanged."""
        service = MessageService(db_session, clock=clock)
        message = await service.send(conversation_id, buyer.id, "original")

        clock.advance(seconds=601)
        with pytest.raises(EditWindowExpiredError):
            await service.edit(message.id, buyer.id, "too late")

        assert message.body == "original"
        assert message.edited_at is None

    async def test_only_sender_can_edit(self, db_session, buyer, seller, conversation_id):
        """Test the other participant cannot edit someone else's message."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "mine")

        with pytest.raises(NotAuthorizedError):
            await service.edit(message.id, seller.id, "not yours")

    async def test_edit_missing_message(self, db_session, buyer):
        """Test editing an unknown message fails with NotFoundError."""
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.edit(generate_uuid(), buyer.id, "anything")

    async def test_edit_validates_body(self, db_session, buyer, conversation_id):
        """Test edits are held to the same body rules as sends."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "original")

        with pytest.raises(ValidationError):
            await service.edit(message.id, buyer.id, "   ")

    async def test_cannot_edit_deleted_message(self, db_session, buyer, conversation_id):
        """Test deletion is terminal: a deleted message cannot be edited."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "original")
        await service.soft_delete(message.id, buyer.id)

        with pytest.raises(NotAuthorizedError):
            await service.edit(message.id, buyer.id, "resurrected")


class TestSoftDelete:
    """Test soft deletion."""

    async def test_delete_keeps_row(self, db_session, buyer, conversation_id, clock):
        """Test the row survives with deleted_at set."""
        service = MessageService(db_session, clock=clock)
        message = await service.send(conversation_id, buyer.id, "regrettable")

        clock.advance(seconds=30)
        deleted = await service.soft_delete(message.id, buyer.id)

        assert deleted.is_deleted
        assert ensure_utc(deleted.deleted_at) == clock.now
        stored = await db_session.get(Message, message.id)
        assert stored is not None
        assert stored.body == "regrettable"

    async def test_only_sender_can_delete(self, db_session, buyer, seller, conversation_id):
        """Test the other participant cannot delete someone else's message."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "mine")

        with pytest.raises(NotAuthorizedError):
            await service.soft_delete(message.id, seller.id)

    async def test_delete_twice_rejected(self, db_session, buyer, conversation_id):
        """Test a deleted message cannot be deleted again."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "once")
        await service.soft_delete(message.id, buyer.id)

        with pytest.raises(NotAuthorizedError):
            await service.soft_delete(message.id, buyer.id)

    async def test_delete_missing_message(self, db_session, buyer):
        """Test deleting an unknown message fails with NotFoundError."""
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.soft_delete(generate_uuid(), buyer.id)


class TestListConversationMessages:
    """Test thread rendering for a viewer."""

    async def test_thread_renders_sender_context(
        self, db_session, buyer, seller, conversation_id, clock
    ):
        """Test messages come back oldest first with sender names and ownership."""
        service = MessageService(db_session, clock=clock)
        await service.send(conversation_id, buyer.id, "Hi, is the bike available?")
        clock.advance(minutes=2)
        await service.send(conversation_id, seller.id, "Yes it is")

        thread = await service.list_conversation_messages(conversation_id, buyer.id)

        assert [m.body for m in thread] == ["Hi, is the bike available?", "Yes it is"]
        assert thread[0].sender_name == "Alice Buyer"
        assert thread[0].sender_avatar_url == "https://cdn.example.com/alice.png"
        assert thread[0].is_mine is True
        assert thread[1].sender_name == "Sam Seller"
        assert thread[1].is_mine is False

    async def test_deleted_message_shows_placeholder(
        self, db_session, buyer, seller, conversation_id
    ):
        """Test a soft-deleted message stays in the thread with a placeholder body."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "secret")
        await service.soft_delete(message.id, buyer.id)

        thread = await service.list_conversation_messages(conversation_id, seller.id)

        assert len(thread) == 1
        assert thread[0].is_deleted is True
        assert thread[0].body == "Message deleted"

    async def test_edited_flag(self, db_session, buyer, conversation_id):
        """Test edited messages are flagged."""
        service = MessageService(db_session)
        message = await service.send(conversation_id, buyer.id, "typo")
        await service.edit(message.id, buyer.id, "fixed")

        thread = await service.list_conversation_messages(conversation_id, buyer.id)

        assert thread[0].is_edited is True
        assert thread[0].body == "fixed"

    async def test_read_flag_reflects_viewer_receipts(
        self, db_session, buyer, seller, conversation_id
    ):
        """Test is_read follows the viewer's own receipts."""
        service = MessageService(db_session)
        await service.send(conversation_id, buyer.id, "hello")

        before = await service.list_conversation_messages(conversation_id, seller.id)
        await ReadReceiptService(db_session).mark_conversation_read(conversation_id, seller.id)
        after = await service.list_conversation_messages(conversation_id, seller.id)

        assert before[0].is_read is False
        assert after[0].is_read is True

    async def test_missing_sender_profile_falls_back(
        self, db_session, stranger, listing
    ):
        """Test a sender without a display name renders with the fallback name."""
        conversation_id = await ConversationService(db_session).get_or_create(
            listing.id, stranger.id
        )
        service = MessageService(db_session)
        await service.send(conversation_id, stranger.id, "hi")

        thread = await service.list_conversation_messages(conversation_id, stranger.id)

        assert thread[0].sender_name == "User"

    async def test_non_participant_cannot_read_thread(
        self, db_session, stranger, conversation_id
    ):
        """Test the thread is invisible to outsiders."""
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.list_conversation_messages(conversation_id, stranger.id)
