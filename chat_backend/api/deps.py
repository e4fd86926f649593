"""FastAPI dependencies shared by the route modules"""

from typing import Optional

from fastapi import Depends, Request

from chat_backend.core.config import settings
from chat_backend.db.session import SessionLocal
from chat_backend.services.auth import SessionResolver, SessionUser
from chat_backend.services.chat_store import ChatStore
from chat_backend.services.generation import GenerationEngine
from chat_backend.services.llm_client import ModelClient

_chat_store: Optional[ChatStore] = None
_session_resolver: Optional[SessionResolver] = None
_model_client: Optional[ModelClient] = None


def get_chat_store() -> ChatStore:
    """Get the global chat store (singleton)"""
    global _chat_store
    if _chat_store is None:
        _chat_store = ChatStore(SessionLocal)
    return _chat_store


def get_session_resolver() -> SessionResolver:
    """Get the global session resolver (singleton)"""
    global _session_resolver
    if _session_resolver is None:
        _session_resolver = SessionResolver(SessionLocal, cache_ttl=settings.SESSION_CACHE_TTL)
    return _session_resolver


def get_model_client() -> ModelClient:
    """Get the global model backend client (singleton)"""
    global _model_client
    if _model_client is None:
        _model_client = ModelClient(
            settings.MODEL_API_BASE,
            api_key=settings.MODEL_API_KEY,
            timeout=settings.MODEL_REQUEST_TIMEOUT,
        )
    return _model_client


def get_generation_engine(client: ModelClient = Depends(get_model_client)) -> GenerationEngine:
    return GenerationEngine(
        client,
        max_steps=settings.MAX_STEPS,
        chunk_delay=settings.STREAM_CHUNK_DELAY,
    )


def get_session_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie"""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[SessionUser]:
    """The calling user, or None when the request carries no valid session"""
    return resolver.resolve(get_session_token(request))
