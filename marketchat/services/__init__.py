"""
Service layer exports.
One service per messaging component plus the UI-facing action surface.
"""
from marketchat.services.conversation_service import ConversationService
from marketchat.services.inbox_service import InboxService
from marketchat.services.message_service import MessageService
from marketchat.services.messaging_actions import MessagingActions
from marketchat.services.rate_limiter import MessageRateLimiter
from marketchat.services.read_receipt_service import ReadReceiptService
from marketchat.services.user_directory import UserDirectory

__all__ = [
    "ConversationService",
    "InboxService",
    "MessageService",
    "MessagingActions",
    "MessageRateLimiter",
    "ReadReceiptService",
    "UserDirectory",
]
