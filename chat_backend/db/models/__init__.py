from chat_backend.db.models.user import User, AuthSession
from chat_backend.db.models.chat import Chat, Message

__all__ = [
    "User",
    "AuthSession",
    "Chat",
    "Message",
]
