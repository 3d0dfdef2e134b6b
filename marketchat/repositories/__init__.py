"""
Repository layer exports.
Provides database access layer for the application.
"""
from marketchat.repositories.base import BaseRepository
from marketchat.repositories.conversation_repo import ConversationRepository
from marketchat.repositories.message_repo import MessageRepository, MessageReadRepository
from marketchat.repositories.listing_repo import ListingRepository, ListingOwnership, ListingSummary
from marketchat.repositories.user_repo import UserRepository, UserProfile

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "MessageRepository",
    "MessageReadRepository",
    "ListingRepository",
    "ListingOwnership",
    "ListingSummary",
    "UserRepository",
    "UserProfile",
]
