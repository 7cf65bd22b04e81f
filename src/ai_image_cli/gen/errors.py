from __future__ import annotations

from pathlib import Path
from typing import Optional


class ImageGenError(Exception):
    """Base class for every failure surfaced by the generation pipeline."""

    pass


class MissingCredentialError(ImageGenError):
    def __init__(self, provider: str, env_var: Optional[str] = None):
        self.provider = provider
        self.env_var = env_var
        message = f"API key for {provider} not found. Provide it with --api-key"
        if env_var:
            message += f" or set {env_var}"
        super().__init__(message + ".")


class UnsupportedProviderError(ImageGenError):
    def __init__(self, provider: str, available: tuple[str, ...] = ()):
        self.provider = provider
        message = f"Unsupported provider: '{provider}'"
        if available:
            message += f". Available providers: {sorted(available)}"
        super().__init__(message)


class InvalidOptionError(ImageGenError):
    """Raised for an empty prompt or an option value the provider cannot accept."""

    pass


class ProviderRequestError(ImageGenError):
    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"Failed to generate image with {provider}: {message}")


class FilesystemError(ImageGenError):
    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
