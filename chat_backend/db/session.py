"""Database engine and session factory"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from chat_backend.core.config import settings


def build_engine(database_url: str):
    """Create an engine, enabling cross-thread use for SQLite"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

# Objects handed out by the chat store outlive their session
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
