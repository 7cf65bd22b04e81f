from __future__ import annotations

from abc import ABC, abstractmethod

from .types import ProviderImage, ProviderPayload


class ImageProvider(ABC):
    @property
    @abstractmethod
    def provider_id(self) -> str: ...

    @abstractmethod
    def generate(self, payload: ProviderPayload) -> list[ProviderImage]:
        """Run the provider call and return its images in provider order."""
        raise NotImplementedError
