"""
Core pytest configuration and fixtures for chat backend testing.

The application is pointed at an in-memory SQLite database before any
chat_backend module is imported; every test gets fresh tables.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chat_backend.api import deps
from chat_backend.core.config import settings
from chat_backend.db import models  # noqa: F401
from chat_backend.db.base import Base
from chat_backend.db.models.user import User
from chat_backend.main import app
from chat_backend.services.auth import SessionUser
from chat_backend.services.chat_store import ChatStore
from chat_backend.services.generation import GenerationEngine

from helpers import USER_A, USER_B, FakeModelClient


# ===== ENVIRONMENT =====


@pytest.fixture(autouse=True)
def conversation_log_dir(tmp_path, monkeypatch):
    """Keep the JSONL conversation log inside the test's temp directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(settings, "CONVERSATION_LOG_DIR", str(log_dir))
    return log_dir


# ===== DATABASE FIXTURES =====


@pytest.fixture
def session_factory():
    """Session factory bound to a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def users(session_factory):
    """Two registered users, A and B."""
    db = session_factory()
    db.add_all([
        User(id=USER_A, email="a@example.com"),
        User(id=USER_B, email="b@example.com"),
    ])
    db.commit()
    db.close()
    return {"a": USER_A, "b": USER_B}


@pytest.fixture
def store(session_factory, users) -> ChatStore:
    return ChatStore(session_factory)


# ===== MOCK FIXTURES =====


@pytest.fixture
def model_client() -> FakeModelClient:
    """Fake backend that answers with plain text unless a test scripts steps."""
    return FakeModelClient()


@pytest.fixture
def current_user():
    """Mutable holder for the user the API should see; None means signed out."""
    return {"user": SessionUser(user_id=USER_A, email="a@example.com")}


# ===== APP FIXTURES =====


@pytest.fixture
def api_client(store, model_client, current_user):
    """TestClient with the store, backend and session dependencies overridden."""
    app.dependency_overrides[deps.get_chat_store] = lambda: store
    app.dependency_overrides[deps.get_model_client] = lambda: model_client
    app.dependency_overrides[deps.get_generation_engine] = lambda: GenerationEngine(
        model_client, max_steps=settings.MAX_STEPS, chunk_delay=0
    )
    app.dependency_overrides[deps.get_current_user] = lambda: current_user["user"]
    yield TestClient(app)
    app.dependency_overrides.clear()


# ===== CONFIGURATION =====


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
