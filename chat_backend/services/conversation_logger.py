"""Conversation Logger - Logs messages and chat events to a JSONL file for human-readable history"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from chat_backend.core.config import settings

logger = logging.getLogger(__name__)


def get_log_directory() -> Path:
    """Get the log directory path (CONVERSATION_LOG_DIR)"""
    log_dir = Path(settings.CONVERSATION_LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_file_path() -> Path:
    """Get the path to the JSONL log file"""
    return get_log_directory() / "conversations.jsonl"


def _append(log_entry: Dict[str, Any]):
    try:
        log_file = get_log_file_path()
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        # Don't fail the main operation if logging fails
        logger.warning("Failed to write conversation log: %s", e)


def log_message(
    chat_id: str,
    user_id: str,
    role: str,
    content: Any,
    metadata: Optional[Dict[str, Any]] = None
):
    """Log a single message to the JSONL file

    Args:
        chat_id: ID of the chat
        user_id: ID of the chat owner
        role: 'user', 'assistant' or 'tool'
        content: The message content (text or parts)
        metadata: Optional metadata (model, message id, etc.)
    """
    log_entry = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "chat_id": str(chat_id),
        "user_id": str(user_id),
        "role": role,
        "content": content,
    }

    if metadata:
        log_entry["metadata"] = metadata

    _append(log_entry)


def log_conversation_event(
    chat_id: str,
    user_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None
):
    """Log a conversation event (e.g., tool use, error)

    Args:
        chat_id: ID of the chat
        user_id: ID of the chat owner
        event_type: Type of event (e.g., 'tool_use', 'stream_error', 'persist_failed')
        details: Event-specific details
    """
    log_entry = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "chat_id": str(chat_id),
        "user_id": str(user_id),
        "event_type": event_type,
    }

    if details:
        log_entry["details"] = details

    _append(log_entry)
