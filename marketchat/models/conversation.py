"""
Conversation model.

One buyer/seller thread about one listing.
"""
import enum
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketchat.models.base import Base, UUIDMixin, TimestampMixin

if TYPE_CHECKING:
    from marketchat.models.message import Message


class ConversationStatus(str, enum.Enum):
    """Enum for conversation status."""
    OPEN = "open"
    CLOSED = "closed"


class Conversation(Base, UUIDMixin, TimestampMixin):
    """
    Conversation between a prospective buyer and the seller of a listing.

    Exactly one row exists per (listing_id, buyer_id, seller_id); the unique
    constraint is what makes concurrent first-contact calls safe.
    """

    __tablename__ = "conversations"

    listing_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        doc="Listing this conversation is about"
    )

    buyer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who initiated contact"
    )

    seller_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Seller of the listing at creation time"
    )

    status: Mapped[ConversationStatus] = mapped_column(
        SQLEnum(ConversationStatus, name="conversation_status", native_enum=False),
        default=ConversationStatus.OPEN,
        nullable=False
    )

    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Timestamp of the newest message; null until the first message"
    )

    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="select"  # Standard lazy loading for potentially large collections
    )

    __table_args__ = (
        UniqueConstraint("listing_id", "buyer_id", "seller_id", name="uq_conversation_listing_buyer_seller"),
        CheckConstraint("buyer_id <> seller_id", name="ck_conversation_distinct_participants"),
    )

    def other_participant_id(self, user_id: str) -> str:
        """The counterpart of ``user_id`` in this conversation."""
        return self.seller_id if self.buyer_id == user_id else self.buyer_id

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id}, listing_id={self.listing_id}, "
            f"buyer_id={self.buyer_id}, seller_id={self.seller_id})>"
        )


# Indexes for inbox lookups
Index("idx_conversations_buyer_last_message", Conversation.buyer_id, Conversation.last_message_at)
Index("idx_conversations_seller_last_message", Conversation.seller_id, Conversation.last_message_at)
