from __future__ import annotations

import logging
import re
from typing import Optional

from .config import DEFAULT_OPENAI_MODEL, DEFAULT_REPLICATE_MODEL, AIImageConfig
from .errors import InvalidOptionError, UnsupportedProviderError
from .types import (
    PROVIDERS,
    GenerationRequest,
    OpenAIPayload,
    ProviderPayload,
    ReplicatePayload,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "1024x1024"
DEFAULT_DIMENSION = 1024
DEFAULT_QUALITY = "auto"

OPENAI_FORMATS = ("png", "jpeg", "webp")
OPENAI_BACKGROUNDS = ("transparent", "opaque", "auto")
GPT_IMAGE_QUALITIES = ("low", "medium", "high", "auto")
DALLE_QUALITIES = {
    "dall-e-2": ("standard",),
    "dall-e-3": ("standard", "hd"),
}

# Quality names accepted by earlier releases, mapped onto the gpt-image tiers.
DEPRECATED_QUALITY_ALIASES = {
    "standard": "medium",
    "hd": "high",
}

_SIZE_RE = re.compile(r"^\d+x\d+$")
_REPLICATE_MODEL_RE = re.compile(r"^[\w.-]+/[\w.-]+(:[\w.-]+)?$")


def parse_size(size: Optional[str]) -> tuple[int, int]:
    """Split ``WIDTHxHEIGHT`` into integers, falling back to 1024 per side."""
    parts = (size or "").lower().split("x")
    return _to_dimension(parts, 0), _to_dimension(parts, 1)


def _to_dimension(parts: list[str], i: int) -> int:
    if i >= len(parts):
        return DEFAULT_DIMENSION
    try:
        value = int(parts[i].strip())
    except ValueError:
        return DEFAULT_DIMENSION
    return value if value > 0 else DEFAULT_DIMENSION


def _is_dalle(model: str) -> bool:
    return model.lower().startswith("dall-e")


def _check_common(request: GenerationRequest) -> None:
    if not request.prompt or not request.prompt.strip():
        raise InvalidOptionError("Prompt is required and cannot be empty")
    if request.count < 1:
        raise InvalidOptionError(f"Number of images must be at least 1, got {request.count}")


def _openai_quality(quality: Optional[str], model: str) -> str:
    value = (quality or DEFAULT_QUALITY).strip().lower()
    if _is_dalle(model):
        if value == DEFAULT_QUALITY:
            return "standard"
        allowed = DALLE_QUALITIES.get(model.lower(), ("standard", "hd"))
        if value not in allowed:
            raise InvalidOptionError(
                f"Invalid quality '{value}' for {model}. Choose from {list(allowed)}"
            )
        return value

    if value in DEPRECATED_QUALITY_ALIASES:
        alias = DEPRECATED_QUALITY_ALIASES[value]
        logger.warning("Quality '%s' is deprecated, using '%s'", value, alias)
        return alias
    if value not in GPT_IMAGE_QUALITIES:
        raise InvalidOptionError(
            f"Invalid quality '{value}'. Choose from {list(GPT_IMAGE_QUALITIES)}"
        )
    return value


def build_openai_payload(
    request: GenerationRequest, default_model: Optional[str] = None
) -> OpenAIPayload:
    _check_common(request)
    model = request.model or default_model or DEFAULT_OPENAI_MODEL

    size = (request.size or DEFAULT_SIZE).strip().lower()
    if size != "auto" and not _SIZE_RE.match(size):
        raise InvalidOptionError(f"Invalid size '{request.size}'. Expected WIDTHxHEIGHT or 'auto'")

    output_format: Optional[str] = None
    if request.format is not None:
        output_format = request.format.strip().lower()
        if output_format == "jpg":
            output_format = "jpeg"
        if output_format not in OPENAI_FORMATS:
            raise InvalidOptionError(
                f"Invalid format '{request.format}'. Choose from {list(OPENAI_FORMATS)}"
            )

    compression = request.compression
    if compression is not None and not 0 <= compression <= 100:
        raise InvalidOptionError(f"Compression must be between 0 and 100, got {compression}")

    background: Optional[str] = None
    if request.background is not None:
        background = request.background.strip().lower()
        if background not in OPENAI_BACKGROUNDS:
            raise InvalidOptionError(
                f"Invalid background '{request.background}'. Choose from {list(OPENAI_BACKGROUNDS)}"
            )

    if _is_dalle(model):
        if output_format or compression is not None or background:
            logger.debug("Ignoring format/compression/background for %s", model)
        return OpenAIPayload(
            model=model,
            prompt=request.prompt,
            size=size,
            quality=_openai_quality(request.quality, model),
            n=request.count,
            response_format="b64_json",
        )

    if output_format == "png":
        output_format = None
    if output_format not in ("jpeg", "webp"):
        compression = None

    return OpenAIPayload(
        model=model,
        prompt=request.prompt,
        size=size,
        quality=_openai_quality(request.quality, model),
        n=request.count,
        output_format=output_format,
        output_compression=compression,
        background=background,
    )


def build_replicate_payload(
    request: GenerationRequest, default_model: Optional[str] = None
) -> ReplicatePayload:
    _check_common(request)
    model = request.model or default_model or DEFAULT_REPLICATE_MODEL
    if not _REPLICATE_MODEL_RE.match(model):
        raise InvalidOptionError(
            f"Invalid Replicate model '{model}'. Expected 'owner/model' or 'owner/model:version'"
        )

    ignored = {
        "quality": request.quality,
        "format": request.format,
        "compression": request.compression,
        "background": request.background,
    }
    for name, value in ignored.items():
        if value is not None:
            logger.debug("Option '%s' is not supported by replicate, ignoring", name)

    width, height = parse_size(request.size)
    return ReplicatePayload(
        model=model,
        prompt=request.prompt,
        width=width,
        height=height,
        num_outputs=request.count,
    )


def build_payload(
    provider: str,
    request: GenerationRequest,
    config: Optional[AIImageConfig] = None,
) -> ProviderPayload:
    """Translate a generic request into the payload for ``provider``.

    Raises:
        UnsupportedProviderError: If ``provider`` is not a known tag.
        InvalidOptionError: If the prompt is empty or an option is malformed.
    """
    provider = (provider or "").strip().lower()
    default_model = config.default_model(provider) if config is not None else None

    if provider == "openai":
        return build_openai_payload(request, default_model)
    if provider == "replicate":
        return build_replicate_payload(request, default_model)
    raise UnsupportedProviderError(provider, PROVIDERS)
