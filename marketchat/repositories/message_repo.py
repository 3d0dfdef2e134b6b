"""
Message repository for database operations.
Handles messages and read receipts, including the batched lookups the inbox relies on.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select, and_, func, desc, exists, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.models.message import Message, MessageRead
from marketchat.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, db)

    async def sender_window_stats(
        self,
        conversation_id: str,
        sender_id: str,
        since: datetime
    ) -> Tuple[int, Optional[datetime]]:
        """
        Count a sender's messages in a conversation created at or after ``since``.

        Deleted messages still count: deleting does not refund throughput.

        Returns:
            Tuple of (count, created_at of the oldest counted message)
        """
        result = await self.db.execute(
            select(func.count(Message.id), func.min(Message.created_at)).where(
                and_(
                    Message.conversation_id == conversation_id,
                    Message.sender_id == sender_id,
                    Message.created_at >= since,
                )
            )
        )
        count, oldest = result.one()
        return count or 0, oldest

    async def list_for_conversation(self, conversation_id: str) -> List[Message]:
        """
        Get the full message history of a conversation, oldest first.

        Soft-deleted messages are included; callers render them as placeholders.
        """
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(result.scalars().all())

    async def latest_visible_by_conversation(
        self, conversation_ids: Iterable[str]
    ) -> Dict[str, Message]:
        """
        Get the newest non-deleted message of each conversation in one query.

        Rows come back newest-first per conversation and only the first row
        seen for each conversation is kept.

        Args:
            conversation_ids: Conversation IDs

        Returns:
            Mapping of conversation ID to its latest visible message
            (conversations with no visible messages are absent)
        """
        conversation_ids = list(conversation_ids)
        if not conversation_ids:
            return {}

        result = await self.db.execute(
            select(Message)
            .where(
                and_(
                    Message.conversation_id.in_(conversation_ids),
                    Message.deleted_at.is_(None),
                )
            )
            .order_by(Message.conversation_id, desc(Message.created_at), desc(Message.id))
        )

        latest: Dict[str, Message] = {}
        for message in result.scalars():
            latest.setdefault(message.conversation_id, message)
        return latest

    async def visible_from_others(
        self,
        conversation_ids: Iterable[str],
        user_id: str
    ) -> List[Tuple[str, str]]:
        """
        Get non-deleted messages the user did not send, across conversations.

        These are the only messages that can ever be unread for ``user_id``.

        Returns:
            List of (message_id, conversation_id) pairs
        """
        conversation_ids = list(conversation_ids)
        if not conversation_ids:
            return []

        result = await self.db.execute(
            select(Message.id, Message.conversation_id).where(
                and_(
                    Message.conversation_id.in_(conversation_ids),
                    Message.sender_id != user_id,
                    Message.deleted_at.is_(None),
                )
            )
        )
        return [(row.id, row.conversation_id) for row in result.all()]

    async def count_unread(self, conversation_id: str, user_id: str) -> int:
        """
        Count unread messages in a single conversation for a user.

        A message is unread when it was sent by someone else, is not deleted,
        and has no receipt from ``user_id``.
        """
        has_receipt = exists().where(
            and_(
                MessageRead.message_id == Message.id,
                MessageRead.user_id == user_id,
            )
        )
        result = await self.db.execute(
            select(func.count())
            .select_from(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    Message.sender_id != user_id,
                    Message.deleted_at.is_(None),
                    ~has_receipt,
                )
            )
        )
        return result.scalar() or 0


class MessageReadRepository:
    """Repository for read receipts (composite key, so no BaseRepository id helpers)."""

    def __init__(self, db: AsyncSession):
        """Initialize read receipt repository."""
        self.db = db

    async def read_message_ids(
        self,
        user_id: str,
        message_ids: Iterable[str]
    ) -> Set[str]:
        """
        Get the subset of ``message_ids`` the user holds receipts for, in one query.
        """
        message_ids = list(message_ids)
        if not message_ids:
            return set()

        result = await self.db.execute(
            select(MessageRead.message_id).where(
                and_(
                    MessageRead.user_id == user_id,
                    MessageRead.message_id.in_(message_ids),
                )
            )
        )
        return set(result.scalars().all())

    async def insert_missing(
        self,
        message_ids: Iterable[str],
        user_id: str,
        read_at: datetime
    ) -> int:
        """
        Record receipts for any of ``message_ids`` the user has not read yet.

        Existing receipts are left untouched. Already-read ids are filtered out
        up front; on PostgreSQL and SQLite the insert additionally uses
        ON CONFLICT DO NOTHING so a concurrent mark of the same messages is
        absorbed instead of raising.

        Returns:
            Number of receipts this call attempted to create
        """
        message_ids = list(dict.fromkeys(message_ids))
        if not message_ids:
            return 0

        already_read = await self.read_message_ids(user_id, message_ids)
        missing = [mid for mid in message_ids if mid not in already_read]
        if not missing:
            return 0

        rows = [
            {"message_id": mid, "user_id": user_id, "read_at": read_at}
            for mid in missing
        ]

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(MessageRead).on_conflict_do_nothing(
                index_elements=["message_id", "user_id"]
            )
        elif dialect == "sqlite":
            stmt = sqlite.insert(MessageRead).on_conflict_do_nothing(
                index_elements=["message_id", "user_id"]
            )
        else:
            stmt = insert(MessageRead)

        await self.db.execute(stmt, rows)
        await self.db.flush()
        return len(missing)
