from __future__ import annotations

from dataclasses import dataclass

from .gen.config import DEFAULT_OPENAI_MODEL, DEFAULT_REPLICATE_MODEL


@dataclass(frozen=True)
class ModelInfo:
    provider: str
    model_id: str
    description: str
    default: bool = False


MODEL_CATALOG: tuple[ModelInfo, ...] = (
    ModelInfo("openai", DEFAULT_OPENAI_MODEL, "GPT image model", default=True),
    ModelInfo("openai", "dall-e-3", "DALL-E 3 (legacy, standard/hd quality)"),
    ModelInfo("openai", "dall-e-2", "DALL-E 2 (legacy)"),
    ModelInfo(
        "replicate",
        DEFAULT_REPLICATE_MODEL.split(":")[0],
        "Stable Diffusion XL",
        default=True,
    ),
    ModelInfo("replicate", "stability-ai/stable-diffusion", "Stable Diffusion"),
)

REPLICATE_MODEL_HINT = 'Any model from replicate.com in the form "owner/model" or "owner/model:version"'

API_KEY_URLS = {
    "openai": "https://platform.openai.com/api-keys",
    "replicate": "https://replicate.com/account/api-tokens",
}


def models_for(provider: str) -> list[ModelInfo]:
    return [m for m in MODEL_CATALOG if m.provider == provider]
