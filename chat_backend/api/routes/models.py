"""API route listing the selectable models"""

from typing import List

from fastapi import APIRouter

from chat_backend.core.config import settings
from chat_backend.schemas.chat import ModelResponse
from chat_backend.services.model_catalog import MODELS

router = APIRouter(prefix=settings.API_PREFIX, tags=["models"])


@router.get("/models", response_model=List[ModelResponse])
async def list_models():
    return [
        {"id": model.id, "label": model.label, "description": model.description}
        for model in MODELS
    ]
