"""API routes for submitting chat turns and deleting chats"""

import logging
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from chat_backend.api.deps import (
    get_chat_store,
    get_current_user,
    get_generation_engine,
    get_model_client,
)
from chat_backend.core.config import settings
from chat_backend.core.errors import (
    ModelNotFound,
    NoUserMessage,
    NotFound,
    OperationFailed,
    PersistenceFailure,
    Unauthorized,
)
from chat_backend.schemas.chat import ChatRequest
from chat_backend.schemas.stream import (
    ErrorEvent,
    FinishEvent,
    MetadataEvent,
    ResponseMessage,
    ToolResultEvent,
)
from chat_backend.services.auth import SessionUser
from chat_backend.services.chat_store import ChatStore
from chat_backend.services.conversation_logger import log_conversation_event, log_message
from chat_backend.services.generation import GenerationEngine
from chat_backend.services.llm_client import ModelClient
from chat_backend.services.messages import (
    get_message_text,
    get_most_recent_user_message,
    ui_to_model_messages,
)
from chat_backend.services.model_catalog import get_model
from chat_backend.services.prompts import SYSTEM_PROMPT
from chat_backend.services.sanitizer import sanitize_response_messages
from chat_backend.services.titles import generate_title_from_user_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_PREFIX}/chat", tags=["chat"])


class TurnState:
    """What the relay learned about a turn, read by the finish-time write-back"""

    def __init__(self):
        self.messages: Optional[List[ResponseMessage]] = None


# ============================================================================
# Submit Turn
# ============================================================================

@router.post("")
async def submit_turn(
    request: ChatRequest,
    user: Optional[SessionUser] = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
    engine: GenerationEngine = Depends(get_generation_engine),
    client: ModelClient = Depends(get_model_client),
):
    """Persist the user's turn and stream the model's response as SSE

    1. Checks the session, the model selector and the history
    2. Creates the chat (with a generated title) on its first turn
    3. Saves the user message
    4. Streams engine events, starting with the assistant message id
    5. After the stream, saves the sanitized response messages
    """
    if user is None:
        raise Unauthorized()

    model = get_model(request.model_id)
    if model is None:
        raise ModelNotFound()

    user_message = get_most_recent_user_message(request.messages)
    if user_message is None:
        raise NoUserMessage()

    chat = store.get_chat_by_id(request.id)
    if chat is None:
        title_model = get_model(settings.TITLE_MODEL_ID) or model
        title = await generate_title_from_user_message(
            client, title_model.api_identifier, get_message_text(user_message)
        )
        store.save_chat(request.id, user.user_id, title)
        logger.info("Created chat %s for user %s: %r", request.id, user.user_id, title)
    elif chat.user_id != user.user_id:
        raise Unauthorized()

    store.save_messages(request.id, [{
        "id": user_message.id,
        "role": "user",
        "content": user_message.content,
    }])
    log_message(request.id, user.user_id, "user", user_message.content, {"message_id": user_message.id})

    assistant_message_id = str(uuid4())
    turn = TurnState()

    async def relay_events():
        yield MetadataEvent(name="assistant-message-id", value=assistant_message_id).to_sse()

        try:
            async for event in engine.stream(
                model=model.api_identifier,
                system=SYSTEM_PROMPT,
                messages=ui_to_model_messages(request.messages),
                active_tools=settings.ACTIVE_TOOLS,
                message_id=assistant_message_id,
            ):
                if isinstance(event, FinishEvent):
                    turn.messages = event.messages
                elif isinstance(event, ToolResultEvent):
                    log_conversation_event(request.id, user.user_id, "tool_use", {
                        "tool_name": event.tool_name,
                        "tool_call_id": event.tool_call_id,
                    })
                elif isinstance(event, ErrorEvent):
                    log_conversation_event(request.id, user.user_id, "stream_error", {"error": event.error})
                yield event.to_sse()
        except Exception as e:
            logger.exception("Generation failed in chat %s", request.id)
            log_conversation_event(request.id, user.user_id, "stream_error", {"error": str(e)})
            yield ErrorEvent(error="An error occurred while generating the response").to_sse()

    return StreamingResponse(
        relay_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
        background=BackgroundTask(save_response_messages, store, request.id, user.user_id, turn),
    )


def save_response_messages(store: ChatStore, chat_id: str, user_id: str, turn: TurnState):
    """Sanitize and store a finished turn; failures are logged, never raised

    The client has already received the streamed content by the time this
    runs, so a failed write must not surface to it.
    """
    if turn.messages is None:
        logger.info("Turn in chat %s ended without finishing, nothing to save", chat_id)
        return

    try:
        sanitized = sanitize_response_messages(turn.messages)
        store.save_messages(chat_id, [message.model_dump(mode="json") for message in sanitized])
    except Exception as e:
        logger.exception("Failed to save chat %s", chat_id)
        log_conversation_event(chat_id, user_id, "persist_failed", {"error": str(e)})
        return

    for message in sanitized:
        log_message(chat_id, user_id, message.role, message.model_dump(mode="json")["content"],
                    {"message_id": message.id})


# ============================================================================
# Delete Chat
# ============================================================================

@router.delete("")
async def delete_chat(
    chat_id: Optional[str] = Query(default=None, alias="id"),
    user: Optional[SessionUser] = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
):
    """Delete a chat and all its messages; only its owner may do so"""
    if not chat_id:
        raise NotFound()

    if user is None:
        raise Unauthorized()

    try:
        chat = store.get_chat_by_id(chat_id)
    except PersistenceFailure as e:
        raise OperationFailed() from e

    if chat is None:
        logger.warning("Delete requested for missing chat %s", chat_id)
        raise OperationFailed()

    if chat.user_id != user.user_id:
        raise Unauthorized()

    try:
        store.delete_chat_by_id(chat_id)
    except PersistenceFailure as e:
        raise OperationFailed() from e

    logger.info("Deleted chat %s", chat_id)
    return {"message": "Chat deleted"}
