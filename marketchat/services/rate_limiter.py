"""
Per-sender message rate limiter.

Sliding window over the messages table itself: no counter is persisted, the
window start is recomputed as ``now - window`` on every call. Concurrent sends
from the same sender may overshoot the cap slightly.
"""
import logging
import math
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.exceptions import RateLimitExceeded, translate_storage_errors
from marketchat.repositories.message_repo import MessageRepository
from marketchat.utils.datetime_utils import Clock, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class MessageRateLimiter:
    """Bounds how many messages one sender may post into one conversation per window."""

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        clock: Clock = utc_now
    ):
        self.settings = config or default_settings
        self.clock = clock
        self.message_repo = MessageRepository(db)

    @property
    def limit(self) -> int:
        return self.settings.message_rate_limit_count

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.settings.message_rate_limit_window_seconds)

    @translate_storage_errors
    async def check_and_record(self, conversation_id: str, sender_id: str) -> None:
        """
        Admit or reject one more message from ``sender_id``.

        Must be called immediately before the message insert; the insert
        itself is the record.

        Raises:
            RateLimitExceeded: If the sender already has ``limit`` messages
                in the trailing window
        """
        now = self.clock()
        count, oldest = await self.message_repo.sender_window_stats(
            conversation_id, sender_id, since=now - self.window
        )
        if count < self.limit:
            return

        retry_after = self.window.total_seconds()
        if oldest is not None:
            retry_after = (ensure_utc(oldest) + self.window - now).total_seconds()
        retry_after = max(1, math.ceil(retry_after))

        logger.warning(
            "Rate limit hit: sender %s has %d messages in conversation %s (retry in %ss)",
            sender_id, count, conversation_id, retry_after,
        )
        raise RateLimitExceeded(limit=self.limit, retry_after=retry_after)
