"""Title generation for new chats"""

import logging

from chat_backend.core.errors import UpstreamFailure
from chat_backend.services.llm_client import ModelClient
from chat_backend.services.prompts import TITLE_PROMPT

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 80


def truncate_title(text: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Single-line title of at most ``max_length`` characters"""
    clean = " ".join(text.split())
    if len(clean) <= max_length:
        return clean or "New Chat"
    return clean[: max_length - 3].rstrip() + "..."


async def generate_title_from_user_message(client: ModelClient, model: str, message: str) -> str:
    """Ask the model for a short title; one attempt, falls back to the message text"""
    try:
        title = await client.complete(
            model,
            [
                {"role": "system", "content": TITLE_PROMPT},
                {"role": "user", "content": message},
            ],
        )
    except UpstreamFailure as e:
        logger.warning("Title generation failed, using message text: %s", e.detail)
        return truncate_title(message)

    title = title.strip().strip('"').replace(":", "")
    return truncate_title(title or message)
