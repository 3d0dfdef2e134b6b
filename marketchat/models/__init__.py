"""
SQLAlchemy models for the marketplace messaging service.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from marketchat.models.base import Base, TimestampMixin, UUIDMixin

# Import all models (order matters for relationships)
from marketchat.models.user import User
from marketchat.models.listing import Listing, ListingImage
from marketchat.models.conversation import Conversation, ConversationStatus
from marketchat.models.message import Message, MessageRead

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Collaborator read models
    "User",
    "Listing",
    "ListingImage",
    # Conversations
    "Conversation",
    "ConversationStatus",
    # Messages
    "Message",
    "MessageRead",
]
