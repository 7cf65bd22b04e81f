from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from .config import AIImageConfig
from .errors import MissingCredentialError, UnsupportedProviderError
from .provider import ImageProvider
from .providers.openai_images import OpenAIProvider
from .providers.replicate_models import ReplicateProvider
from .types import PROVIDERS


class ProviderRegistry:
    def __init__(self, config: AIImageConfig, api_keys: Optional[Mapping[str, str]] = None):
        self._config = config
        self._api_keys = dict(api_keys or {})
        self._providers: dict[str, ImageProvider] = {}

    def get_provider(self, name: str) -> ImageProvider:
        if name in self._providers:
            return self._providers[name]

        provider = self._instantiate_provider(name)
        self._providers[name] = provider
        return provider

    def _instantiate_provider(self, name: str) -> ImageProvider:
        if name not in PROVIDERS:
            raise UnsupportedProviderError(name, PROVIDERS)

        api_key = self._api_keys.get(name)
        if not api_key:
            raise MissingCredentialError(name, self._config.api_key_env(name))

        if name == "openai":
            return OpenAIProvider(api_key)
        return ReplicateProvider(api_key)
