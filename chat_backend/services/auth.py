"""Session resolution: turn a session token into the calling user"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from cachetools import TTLCache
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from chat_backend.core.errors import PersistenceFailure
from chat_backend.db.models.user import AuthSession, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    user_id: str
    email: Optional[str] = None


class SessionResolver:
    """Looks session tokens up in the database, caching hits for a short while"""

    def __init__(self, session_factory: sessionmaker, cache_ttl: int = 60, cache_size: int = 1024):
        self._session_factory = session_factory
        self._cache = TTLCache(maxsize=cache_size, ttl=cache_ttl)

    def resolve(self, token: Optional[str]) -> Optional[SessionUser]:
        """Return the user owning ``token``, or None if it is unknown or expired"""
        if not token:
            return None

        cached = self._cache.get(token)
        if cached is not None:
            cached_user, expires_at = cached
            if expires_at is None or datetime.utcnow() < expires_at:
                return cached_user
            self._cache.pop(token, None)

        db = self._session_factory()
        try:
            auth_session = db.get(AuthSession, token)
            if auth_session is None or auth_session.is_expired():
                return None
            user = db.get(User, auth_session.user_id)
            if user is None:
                return None
            session_user = SessionUser(user_id=user.id, email=user.email)
            expires_at = auth_session.expires_at
        except SQLAlchemyError as e:
            logger.error("Session lookup failed: %s", e)
            raise PersistenceFailure("Failed to resolve session") from e
        finally:
            db.close()

        self._cache[token] = (session_user, expires_at)
        return session_user

    def invalidate(self, token: str):
        self._cache.pop(token, None)


def create_session(
    session_factory: sessionmaker,
    email: str,
    lifetime: Optional[timedelta] = None,
) -> str:
    """Create the user if needed and issue a new session token for them"""
    db = session_factory()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(email=email)
            db.add(user)
            db.flush()

        token = secrets.token_urlsafe(32)
        db.add(AuthSession(
            token=token,
            user_id=user.id,
            expires_at=datetime.utcnow() + lifetime if lifetime else None,
        ))
        db.commit()
        return token
    finally:
        db.close()
