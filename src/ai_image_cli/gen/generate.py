from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Optional

import httpx

from .config import AIImageConfig
from .errors import (
    InvalidOptionError,
    MissingCredentialError,
    ProviderRequestError,
    UnsupportedProviderError,
)
from .mapping import build_payload
from .output import write_image
from .provider import ImageProvider
from .registry import ProviderRegistry
from .types import PROVIDERS, GenerationRequest

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SEC = 60.0


def resolve_api_key(
    provider: str,
    api_key: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    config: Optional[AIImageConfig] = None,
) -> str:
    """Return the explicit key, or read the provider's environment variable.

    Raises:
        UnsupportedProviderError: If ``provider`` is not a known tag.
        MissingCredentialError: If no key is supplied or found.
    """
    if provider not in PROVIDERS:
        raise UnsupportedProviderError(provider, PROVIDERS)
    config = config or AIImageConfig()
    env_var = config.api_key_env(provider)
    if api_key:
        return api_key
    if environ is None:
        environ = os.environ
    key = environ.get(env_var, "") if env_var else ""
    if not key:
        raise MissingCredentialError(provider, env_var)
    return key


def fetch_image(url: str, client: httpx.Client) -> bytes:
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ProviderRequestError("replicate", f"failed to download {url}: {e}") from e
    if not response.content:
        raise ProviderRequestError("replicate", f"download from {url} returned no image data")
    return response.content


class ImageGenerator:
    """Generates images with one provider and saves them into ``output_dir``."""

    def __init__(
        self,
        provider: str,
        api_key: Optional[str],
        output_dir: Optional[Path] = None,
        output_filename: Optional[str] = None,
        config: Optional[AIImageConfig] = None,
        http_client: Optional[httpx.Client] = None,
        image_provider: Optional[ImageProvider] = None,
    ):
        self.provider = (provider or "").strip().lower()
        self.config = config or AIImageConfig()
        if self.provider not in PROVIDERS:
            raise UnsupportedProviderError(self.provider, PROVIDERS)
        if not api_key and image_provider is None:
            raise MissingCredentialError(self.provider, self.config.api_key_env(self.provider))

        self.output_dir = Path(output_dir or self.config.output_dir or Path.cwd())
        self.output_filename = output_filename
        self._http_client = http_client

        if image_provider is None:
            registry = ProviderRegistry(self.config, {self.provider: api_key or ""})
            image_provider = registry.get_provider(self.provider)
        self._image_provider = image_provider

    @classmethod
    def from_env(
        cls,
        provider: str,
        api_key: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> "ImageGenerator":
        provider = (provider or "").strip().lower()
        key = resolve_api_key(provider, api_key, environ, kwargs.get("config"))
        return cls(provider, key, **kwargs)

    @contextlib.contextmanager
    def _download_client(self) -> Iterator[httpx.Client]:
        if self._http_client is not None:
            yield self._http_client
            return
        with httpx.Client(timeout=DOWNLOAD_TIMEOUT_SEC, follow_redirects=True) as client:
            yield client

    def generate(self, request: GenerationRequest) -> list[Path]:
        """Generate images for ``request`` and return the saved paths in provider order.

        Files written before a failing step are left in place.
        """
        if request.provider and request.provider.strip().lower() != self.provider:
            raise InvalidOptionError(
                f"Request targets '{request.provider}' but this generator uses '{self.provider}'"
            )

        payload = build_payload(self.provider, request, self.config)
        if request.debug:
            logger.debug("%s payload: %s", self.provider, payload)
        logger.info("Generating %d image(s) with %s (%s)", request.count, self.provider, payload.model)

        images = self._image_provider.generate(payload)

        saved: list[Path] = []
        with contextlib.ExitStack() as stack:
            client: Optional[httpx.Client] = None
            for i, image in enumerate(images):
                if image.is_remote:
                    if client is None:
                        client = stack.enter_context(self._download_client())
                    logger.debug("Downloading %s", image.url)
                    data = fetch_image(image.url or "", client)
                else:
                    data = image.data or b""
                path = write_image(
                    data,
                    self.output_dir,
                    request.prompt,
                    index=i,
                    extension=payload.extension,
                    explicit_filename=self.output_filename,
                )
                saved.append(path)
        return saved


def generate_images(
    request: GenerationRequest,
    api_key: Optional[str] = None,
    output_dir: Optional[Path] = None,
    output_filename: Optional[str] = None,
    config: Optional[AIImageConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[Path]:
    generator = ImageGenerator.from_env(
        request.provider or "openai",
        api_key=api_key,
        environ=environ,
        output_dir=output_dir,
        output_filename=output_filename,
        config=config,
    )
    return generator.generate(request)
