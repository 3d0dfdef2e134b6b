"""
Message schemas for request/response validation.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from marketchat.config import settings
from marketchat.models.message import Message
from marketchat.schemas.common import UTCDateTime


class MessageCreate(BaseModel):
    """
    Schema for sending a message.

    Only the shape is checked here. The id format and the trimmed body length
    are enforced by the messaging actions once the caller is known.
    """

    conversation_id: str = Field(..., description="UUID of the conversation")
    body: str = Field(..., description="Message text (1-2000 characters after trimming)")


class MessageUpdate(BaseModel):
    """Schema for editing a message."""

    body: str = Field(..., description="New message text (1-2000 characters after trimming)")


class MessageResponse(BaseModel):
    """A message as stored, with deleted bodies masked."""

    id: str
    conversation_id: str
    sender_id: str
    body: str
    created_at: UTCDateTime
    edited_at: Optional[UTCDateTime] = None
    deleted_at: Optional[UTCDateTime] = None
    is_edited: bool = False
    is_deleted: bool = False

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_message(cls, message: Message, **extra) -> "MessageResponse":
        """
        Build a response from a Message row.

        Soft-deleted messages keep their row but never expose the original body.
        """
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            body=settings.deleted_message_placeholder if message.is_deleted else message.body,
            created_at=message.created_at,
            edited_at=message.edited_at,
            deleted_at=message.deleted_at,
            is_edited=message.edited_at is not None,
            is_deleted=message.is_deleted,
            **extra,
        )


class MessageView(MessageResponse):
    """A message rendered for one viewer inside a conversation thread."""

    sender_name: str
    sender_avatar_url: Optional[str] = None
    is_mine: bool = False
    is_read: bool = False
