from marketchat.schemas.conversation import (
    ConversationCreate,
    ConversationCreated,
    ConversationDetail,
    ConversationResponse,
    ConversationSummary,
    MarkReadResult,
)
from marketchat.schemas.message import (
    MessageCreate,
    MessageResponse,
    MessageUpdate,
    MessageView,
)
from marketchat.schemas.result import (
    ActionFailure,
    ActionResult,
    ActionSuccess,
    ErrorDetail,
)

__all__ = [
    "ConversationCreate",
    "ConversationCreated",
    "ConversationDetail",
    "ConversationResponse",
    "ConversationSummary",
    "MarkReadResult",
    "MessageCreate",
    "MessageResponse",
    "MessageUpdate",
    "MessageView",
    "ActionFailure",
    "ActionResult",
    "ActionSuccess",
    "ErrorDetail",
]
