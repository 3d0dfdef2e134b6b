"""
Read receipt service.

Unread counts are always derived from messages and receipts; nothing is
cached or denormalized, so a count can never drift from the receipts.
"""
import logging
from collections import Counter
from typing import Dict, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.core.exceptions import translate_storage_errors
from marketchat.repositories.message_repo import MessageReadRepository, MessageRepository
from marketchat.utils.datetime_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ReadReceiptService:
    """Service for per-user read receipts and unread counts."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        self.db = db
        self.clock = clock
        self.message_repo = MessageRepository(db)
        self.read_repo = MessageReadRepository(db)

    @translate_storage_errors
    async def mark_conversation_read(self, conversation_id: str, user_id: str) -> int:
        """
        Record receipts for every visible message from the other participant.

        Idempotent: receipts that already exist keep their original ``read_at``.
        Access must already have been checked by the caller.

        Returns:
            Number of receipts created by this call
        """
        candidates = await self.message_repo.visible_from_others([conversation_id], user_id)
        marked = await self.read_repo.insert_missing(
            [message_id for message_id, _ in candidates],
            user_id,
            read_at=self.clock(),
        )
        if marked:
            logger.debug("Marked %d messages read in %s for %s", marked, conversation_id, user_id)
        return marked

    @translate_storage_errors
    async def unread_count(self, conversation_id: str, user_id: str) -> int:
        """Count messages from others in one conversation the user has not read."""
        return await self.message_repo.count_unread(conversation_id, user_id)

    @translate_storage_errors
    async def unread_counts(
        self,
        conversation_ids: Iterable[str],
        user_id: str
    ) -> Dict[str, int]:
        """
        Unread counts for many conversations in two queries total.

        Args:
            conversation_ids: Conversation IDs
            user_id: Reader

        Returns:
            Mapping with an entry (possibly 0) for every requested conversation
        """
        conversation_ids = list(conversation_ids)
        counts: Dict[str, int] = {cid: 0 for cid in conversation_ids}
        if not conversation_ids:
            return counts

        candidates = await self.message_repo.visible_from_others(conversation_ids, user_id)
        read_ids = await self.read_repo.read_message_ids(
            user_id, [message_id for message_id, _ in candidates]
        )
        counts.update(Counter(
            conversation_id
            for message_id, conversation_id in candidates
            if message_id not in read_ids
        ))
        return counts
