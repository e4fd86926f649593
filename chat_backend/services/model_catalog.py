"""Models a client may select for a turn"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ModelConfig:
    id: str
    label: str
    api_identifier: str
    description: str


MODELS: List[ModelConfig] = [
    ModelConfig(
        id="gpt-4o-mini",
        label="GPT 4o mini",
        api_identifier="gpt-4o-mini",
        description="Small model for fast, lightweight tasks",
    ),
    ModelConfig(
        id="gpt-4o",
        label="GPT 4o",
        api_identifier="gpt-4o",
        description="For complex, multi-step tasks",
    ),
]


def get_model(model_id: str, models: List[ModelConfig] = MODELS) -> Optional[ModelConfig]:
    return next((model for model in models if model.id == model_id), None)
