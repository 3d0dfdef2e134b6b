"""
Conversation schemas for request/response validation.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from marketchat.models.conversation import ConversationStatus
from marketchat.schemas.common import UTCDateTime
from marketchat.schemas.message import MessageView


class ConversationCreate(BaseModel):
    """Schema for opening (or resuming) a conversation about a listing."""

    listing_id: str = Field(..., description="UUID of the listing")


class ConversationCreated(BaseModel):
    conversation_id: str


class ConversationResponse(BaseModel):
    """Schema for conversation response."""

    id: str
    listing_id: str
    buyer_id: str
    seller_id: str
    status: ConversationStatus
    created_at: UTCDateTime
    updated_at: UTCDateTime
    last_message_at: Optional[UTCDateTime] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(ConversationResponse):
    """One inbox row: a conversation plus everything needed to render it."""

    listing_title: Optional[str] = None
    listing_image_url: Optional[str] = None
    other_participant_id: str
    other_participant_name: str
    last_message_body: Optional[str] = None
    unread_count: int = 0


class ConversationDetail(BaseModel):
    """A conversation opened by one participant."""

    conversation: ConversationSummary
    messages: List[MessageView]
    current_user_id: str


class MarkReadResult(BaseModel):
    marked: int
