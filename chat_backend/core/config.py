"""Application configuration"""

import os
from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database - PostgreSQL in production, anything SQLAlchemy accepts in tests
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"postgresql://{os.getenv('USER', 'postgres')}@localhost/chat_backend"
    )

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Chat Backend"

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Model backend (any OpenAI-compatible /chat/completions endpoint)
    MODEL_API_BASE: str = "https://api.openai.com/v1"
    MODEL_API_KEY: str = ""
    MODEL_REQUEST_TIMEOUT: float = 60.0
    TITLE_MODEL_ID: str = "gpt-4o-mini"

    # Generation
    MAX_STEPS: int = 5
    ACTIVE_TOOLS: list[str] = ["getWalletAddress", "createEvmWallet"]
    STREAM_CHUNK_DELAY: float = 0.01

    # Sessions
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_CACHE_TTL: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"
    CONVERSATION_LOG_DIR: str = os.getenv(
        "CONVERSATION_LOG_DIR",
        str(Path.home() / ".chat_backend" / "logs")
    )

    class Config:
        case_sensitive = True


settings = Settings()
