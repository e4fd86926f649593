"""API routes for reading back a user's chats and their stored messages"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from chat_backend.api.deps import get_chat_store, get_current_user
from chat_backend.core.config import settings
from chat_backend.core.errors import NotFound, Unauthorized
from chat_backend.schemas.chat import ChatResponse, MessageResponse
from chat_backend.services.auth import SessionUser
from chat_backend.services.chat_store import ChatStore

router = APIRouter(prefix=settings.API_PREFIX, tags=["history"])


@router.get("/history", response_model=List[ChatResponse])
async def list_chats(
    user: Optional[SessionUser] = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
):
    """List the caller's chats, newest first"""
    if user is None:
        raise Unauthorized()

    return [chat.to_dict() for chat in store.get_chats_by_user_id(user.user_id)]


@router.get("/chat/{chat_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    chat_id: str,
    user: Optional[SessionUser] = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
):
    """Get all stored messages of a chat in creation order"""
    if user is None:
        raise Unauthorized()

    chat = store.get_chat_by_id(chat_id)
    if chat is None:
        raise NotFound(f"Chat {chat_id} not found")
    if chat.user_id != user.user_id:
        raise Unauthorized()

    return [message.to_dict() for message in store.get_messages_by_chat_id(chat_id)]
