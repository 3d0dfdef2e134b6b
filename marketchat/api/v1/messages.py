"""
Message API routes.
Provides endpoints for sending, editing and deleting messages.
"""
from fastapi import APIRouter, Depends, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from marketchat.api.responses import render_result
from marketchat.config import settings
from marketchat.dependencies import get_messaging_actions
from marketchat.schemas.message import MessageCreate, MessageUpdate
from marketchat.services.messaging_actions import MessagingActions

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    summary="Send a new message",
    description="Send a message to a conversation. Caller must be its buyer or seller."
)
@limiter.limit(settings.api_rate_limit)
async def send_message(
    request: Request,
    message_data: MessageCreate,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    """
    Send a new message to a conversation.

    - **conversation_id**: UUID of the conversation
    - **body**: Message text, 1-2000 characters after trimming
    """
    result = await actions.send_message(message_data.conversation_id, message_data.body)
    return render_result(result, success_status=status.HTTP_201_CREATED)


@router.put(
    "/{message_id}",
    summary="Edit a message",
    description="Edit your own message within 10 minutes of sending it."
)
async def edit_message(
    message_id: str,
    message_data: MessageUpdate,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    result = await actions.edit_message(message_id, message_data.body)
    return render_result(result)


@router.delete(
    "/{message_id}",
    summary="Delete a message",
    description="Soft-delete your own message. It stays in the thread as a placeholder."
)
async def delete_message(
    message_id: str,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    result = await actions.delete_message(message_id)
    return render_result(result)
