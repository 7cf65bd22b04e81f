from __future__ import annotations

from .gen.errors import (
    FilesystemError,
    ImageGenError,
    InvalidOptionError,
    MissingCredentialError,
    ProviderRequestError,
    UnsupportedProviderError,
)
from .gen.generate import ImageGenerator, generate_images
from .gen.types import GenerationRequest

__all__ = [
    "FilesystemError",
    "GenerationRequest",
    "ImageGenError",
    "ImageGenerator",
    "InvalidOptionError",
    "MissingCredentialError",
    "ProviderRequestError",
    "UnsupportedProviderError",
    "generate_images",
]
