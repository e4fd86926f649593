"""Persistence gateway for chats and messages

Every method opens its own session, so the store can be called from request
handlers and from background tasks alike. SQLAlchemy errors are raised as
PersistenceFailure.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chat_backend.core.errors import PersistenceFailure
from chat_backend.db.models.chat import Chat, Message

logger = logging.getLogger(__name__)


class ChatStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str):
        db: Session = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Chat store failed to %s: %s", action, e)
            raise PersistenceFailure(f"Failed to {action}") from e
        finally:
            db.close()

    # ========================================================================
    # Chats
    # ========================================================================

    def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        with self._session("get chat") as db:
            return db.get(Chat, chat_id)

    def save_chat(self, chat_id: str, user_id: str, title: str) -> Chat:
        with self._session("save chat") as db:
            chat = Chat(id=chat_id, user_id=user_id, title=title)
            db.add(chat)
            db.commit()
            return chat

    def delete_chat_by_id(self, chat_id: str) -> None:
        """Delete a chat together with its messages"""
        with self._session("delete chat") as db:
            chat = db.get(Chat, chat_id)
            if chat is None:
                return
            db.delete(chat)
            db.commit()

    def get_chats_by_user_id(self, user_id: str) -> List[Chat]:
        with self._session("list chats") as db:
            return list(db.scalars(
                select(Chat)
                .where(Chat.user_id == user_id)
                .order_by(Chat.created_at.desc())
            ))

    # ========================================================================
    # Messages
    # ========================================================================

    def save_messages(self, chat_id: str, messages: Iterable[dict]) -> List[Message]:
        """Append messages to a chat in one transaction

        Each item needs ``id``, ``role`` and ``content``. Timestamps are
        assigned here and increase with list position so the batch reads back
        in the order it was given.
        """
        base_time = datetime.utcnow()
        with self._session("save messages") as db:
            rows = [
                Message(
                    id=message["id"],
                    chat_id=chat_id,
                    role=message["role"],
                    content=message["content"],
                    created_at=base_time + timedelta(microseconds=position),
                )
                for position, message in enumerate(messages)
            ]
            db.add_all(rows)
            db.commit()
            return rows

    def get_messages_by_chat_id(self, chat_id: str) -> List[Message]:
        with self._session("list messages") as db:
            return list(db.scalars(
                select(Message)
                .where(Message.chat_id == chat_id)
                .order_by(Message.created_at.asc())
            ))
