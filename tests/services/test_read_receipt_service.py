"""
Unit tests for ReadReceiptService.
Tests receipt creation and derived unread counts.
"""
import pytest
from sqlalchemy import select

from marketchat.models.message import MessageRead
from marketchat.services.conversation_service import ConversationService
from marketchat.services.message_service import MessageService
from marketchat.services.read_receipt_service import ReadReceiptService
from marketchat.utils.datetime_utils import ensure_utc


@pytest.fixture
async def conversation_id(db_session, buyer, listing):
    return await ConversationService(db_session).get_or_create(listing.id, buyer.id)


class TestMarkConversationRead:
    """Test marking conversations read."""

    async def test_unread_round_trip(self, db_session, buyer, seller, conversation_id):
        """Test N messages from the buyer are N unread for the seller until marked read."""
        messages = MessageService(db_session)
        receipts = ReadReceiptService(db_session)
        for i in range(3):
            await messages.send(conversation_id, buyer.id, f"question {i}")

        assert await receipts.unread_count(conversation_id, seller.id) == 3

        marked = await receipts.mark_conversation_read(conversation_id, seller.id)

        assert marked == 3
        assert await receipts.unread_count(conversation_id, seller.id) == 0

    async def test_own_messages_never_unread(self, db_session, buyer, conversation_id):
        """Test the sender never has their own messages counted as unread."""
        await MessageService(db_session).send(conversation_id, buyer.id, "hello")

        assert await ReadReceiptService(db_session).unread_count(conversation_id, buyer.id) == 0

    async def test_mark_read_is_idempotent(
        self, db_session, buyer, seller, conversation_id, clock
    ):
        """Test marking twice creates no duplicate receipts and keeps the first read_at."""
        await MessageService(db_session).send(conversation_id, buyer.id, "hello")
        receipts = ReadReceiptService(db_session, clock=clock)

        first_read_at = clock.now
        assert await receipts.mark_conversation_read(conversation_id, seller.id) == 1
        clock.advance(hours=1)
        assert await receipts.mark_conversation_read(conversation_id, seller.id) == 0

        result = await db_session.execute(
            select(MessageRead).where(MessageRead.user_id == seller.id)
        )
        rows = result.scalars().all()
        assert len(rows) == 1
        assert ensure_utc(rows[0].read_at) == first_read_at

    async def test_only_new_messages_become_unread(
        self, db_session, buyer, seller, conversation_id
    ):
        """Test messages sent after marking read are unread again."""
        messages = MessageService(db_session)
        receipts = ReadReceiptService(db_session)
        await messages.send(conversation_id, buyer.id, "first")
        await receipts.mark_conversation_read(conversation_id, seller.id)

        await messages.send(conversation_id, buyer.id, "second")

        assert await receipts.unread_count(conversation_id, seller.id) == 1

    async def test_deleted_messages_not_unread(
        self, db_session, buyer, seller, conversation_id
    ):
        """Test deleted messages neither count as unread nor receive receipts."""
        messages = MessageService(db_session)
        receipts = ReadReceiptService(db_session)
        kept = await messages.send(conversation_id, buyer.id, "kept")
        removed = await messages.send(conversation_id, buyer.id, "removed")
        await messages.soft_delete(removed.id, buyer.id)

        assert await receipts.unread_count(conversation_id, seller.id) == 1
        assert await receipts.mark_conversation_read(conversation_id, seller.id) == 1

        result = await db_session.execute(
            select(MessageRead.message_id).where(MessageRead.user_id == seller.id)
        )
        assert result.scalars().all() == [kept.id]

    async def test_mark_read_empty_conversation(self, db_session, seller, conversation_id):
        """Test marking a conversation with no messages is a no-op."""
        assert await ReadReceiptService(db_session).mark_conversation_read(
            conversation_id, seller.id
        ) == 0


class TestUnreadCounts:
    """Test batched unread counts."""

    async def test_counts_per_conversation(
        self, db_session, buyer, seller, listing, second_listing
    ):
        """Test counts are reported for every requested conversation, including zeros."""
        conversations = ConversationService(db_session)
        first = await conversations.get_or_create(listing.id, buyer.id)
        second = await conversations.get_or_create(second_listing.id, buyer.id)
        messages = MessageService(db_session)
        await messages.send(first, buyer.id, "one")
        await messages.send(first, buyer.id, "two")
        await messages.send(second, seller.id, "seller wrote")

        counts = await ReadReceiptService(db_session).unread_counts([first, second], seller.id)

        assert counts == {first: 2, second: 0}

    async def test_empty_input(self, db_session, seller):
        """Test no conversations means no queries and an empty result."""
        assert await ReadReceiptService(db_session).unread_counts([], seller.id) == {}

    async def test_matches_single_conversation_count(
        self, db_session, buyer, seller, conversation_id
    ):
        """Test the batched and single-conversation counts agree."""
        messages = MessageService(db_session)
        receipts = ReadReceiptService(db_session)
        await messages.send(conversation_id, buyer.id, "a")
        await receipts.mark_conversation_read(conversation_id, seller.id)
        await messages.send(conversation_id, buyer.id, "b")
        await messages.send(conversation_id, buyer.id, "c")

        batched = await receipts.unread_counts([conversation_id], seller.id)

        assert batched[conversation_id] == await receipts.unread_count(conversation_id, seller.id)
        assert batched[conversation_id] == 2

    async def test_two_queries_for_many_conversations(
        self, db_session, buyer, seller, listing, second_listing, statement_counter
    ):
        """Test batched counts take two queries however many conversations there are."""
        conversations = ConversationService(db_session)
        first = await conversations.get_or_create(listing.id, buyer.id)
        second = await conversations.get_or_create(second_listing.id, buyer.id)
        messages = MessageService(db_session)
        await messages.send(first, buyer.id, "one")
        await messages.send(second, buyer.id, "two")
        receipts = ReadReceiptService(db_session)
        await receipts.mark_conversation_read(first, seller.id)

        statement_counter.reset()
        counts = await receipts.unread_counts([first, second], seller.id)

        assert counts == {first: 0, second: 1}
        assert statement_counter.count == 2
