from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

Provider = Literal["openai", "replicate"]

PROVIDERS: tuple[str, ...] = ("openai", "replicate")


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    provider: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    format: Optional[str] = None
    compression: Optional[int] = None
    background: Optional[str] = None
    count: int = 1
    debug: bool = False


@dataclass(frozen=True)
class OpenAIPayload:
    model: str
    prompt: str
    size: str
    quality: str
    n: int
    output_format: Optional[str] = None
    output_compression: Optional[int] = None
    background: Optional[str] = None
    response_format: Optional[str] = None

    @property
    def provider(self) -> str:
        return "openai"

    @property
    def extension(self) -> str:
        return self.output_format or "png"

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``client.images.generate``, unset options omitted."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "size": self.size,
            "quality": self.quality,
            "n": self.n,
        }
        optional = {
            "output_format": self.output_format,
            "output_compression": self.output_compression,
            "background": self.background,
            "response_format": self.response_format,
        }
        kwargs.update({k: v for k, v in optional.items() if v is not None})
        return kwargs


@dataclass(frozen=True)
class ReplicatePayload:
    model: str
    prompt: str
    width: int
    height: int
    num_outputs: int

    @property
    def provider(self) -> str:
        return "replicate"

    @property
    def extension(self) -> str:
        return "png"

    def to_input(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "width": self.width,
            "height": self.height,
            "num_outputs": self.num_outputs,
        }


ProviderPayload = Union[OpenAIPayload, ReplicatePayload]


@dataclass(frozen=True)
class ProviderImage:
    """One image returned by a provider, either inline bytes or a remote URL."""

    data: Optional[bytes] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.url is None):
            raise ValueError("ProviderImage needs exactly one of data or url")

    @property
    def is_remote(self) -> bool:
        return self.url is not None
