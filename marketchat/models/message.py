"""
Message and MessageRead models.

Messages are soft-deleted only. MessageRead rows are the read receipts that
unread counts are derived from.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketchat.models.base import Base, UUIDMixin
from marketchat.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from marketchat.models.conversation import Conversation


class Message(Base, UUIDMixin):
    """
    Message model.

    The body is never physically removed; once ``deleted_at`` is set the
    message renders as a placeholder and can no longer change.
    """

    __tablename__ = "messages"

    # References
    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        doc="Conversation this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Participant who sent the message"
    )

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Trimmed message text"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the message was created"
    )

    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the body was last edited"
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Soft delete timestamp"
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation_id={self.conversation_id}, sender_id={self.sender_id})>"


class MessageRead(Base):
    """
    Read receipt: ``user_id`` has seen ``message_id``.

    The composite primary key allows at most one receipt per pair, so marking
    a message read twice is a no-op.
    """

    __tablename__ = "message_reads"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Message ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Reader ID"
    )

    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the receipt was recorded"
    )

    def __repr__(self) -> str:
        return f"<MessageRead(message_id={self.message_id}, user_id={self.user_id})>"


# Composite index for per-conversation history and rate-limit window scans
Index("idx_messages_conversation_created", Message.conversation_id, Message.created_at)
Index("idx_messages_conversation_sender_created", Message.conversation_id, Message.sender_id, Message.created_at)
Index("idx_message_reads_user", MessageRead.user_id)
