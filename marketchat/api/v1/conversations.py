"""
Conversation API routes.
Provides endpoints for opening conversations, the inbox, threads and read receipts.
"""
from fastapi import APIRouter, Depends

from marketchat.api.responses import render_result
from marketchat.dependencies import get_messaging_actions
from marketchat.schemas.conversation import ConversationCreate
from marketchat.services.messaging_actions import MessagingActions

router = APIRouter()


@router.post(
    "/",
    summary="Open a conversation",
    description="Create the caller's conversation about a listing, or return the existing one."
)
async def create_or_get_conversation(
    data: ConversationCreate,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    """
    Open (or resume) a conversation with a listing's seller.

    - **listing_id**: UUID of the listing
    """
    result = await actions.create_or_get_conversation(data.listing_id)
    return render_result(result)


@router.get(
    "/",
    summary="Get inbox",
    description="List every conversation the caller is part of, most recently active first."
)
async def get_inbox(
    actions: MessagingActions = Depends(get_messaging_actions)
):
    result = await actions.get_inbox()
    return render_result(result)


@router.get(
    "/{conversation_id}",
    summary="Get conversation",
    description="Get a conversation's summary and its full message thread."
)
async def get_conversation(
    conversation_id: str,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    result = await actions.get_conversation(conversation_id)
    return render_result(result)


@router.post(
    "/{conversation_id}/read",
    summary="Mark conversation read",
    description="Mark every message from the other participant as read."
)
async def mark_conversation_read(
    conversation_id: str,
    actions: MessagingActions = Depends(get_messaging_actions)
):
    result = await actions.mark_read(conversation_id)
    return render_result(result)
