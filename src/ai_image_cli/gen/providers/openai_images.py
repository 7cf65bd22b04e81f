from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from ..errors import ProviderRequestError
from ..provider import ImageProvider
from ..types import OpenAIPayload, ProviderImage, ProviderPayload

logger = logging.getLogger(__name__)


def _entry_get(entry: Any, key: str) -> Any:
    if entry is None:
        return None
    if isinstance(entry, dict):
        return entry.get(key)
    return getattr(entry, key, None)


class OpenAIProvider(ImageProvider):
    def __init__(self, api_key: str, client: Optional[OpenAI] = None):
        self._client = client or OpenAI(api_key=api_key)

    @property
    def provider_id(self) -> str:
        return "openai"

    def generate(self, payload: ProviderPayload) -> list[ProviderImage]:
        if not isinstance(payload, OpenAIPayload):
            raise TypeError(f"OpenAIProvider cannot run a {payload.provider} payload")

        kwargs = payload.to_kwargs()
        logger.debug("images.generate(%s)", {k: v for k, v in kwargs.items() if k != "prompt"})
        try:
            response = self._client.images.generate(**kwargs)
        except OpenAIError as e:
            raise ProviderRequestError(self.provider_id, str(e)) from e

        images: list[ProviderImage] = []
        for i, entry in enumerate(_entry_get(response, "data") or []):
            b64 = _entry_get(entry, "b64_json")
            if not b64:
                logger.warning("Image %d in the OpenAI response carried no data, skipping", i)
                continue
            try:
                images.append(ProviderImage(data=base64.b64decode(b64)))
            except (binascii.Error, ValueError) as e:
                raise ProviderRequestError(self.provider_id, f"invalid base64 image data: {e}") from e

        if not images:
            raise ProviderRequestError(self.provider_id, "response contained no image data")
        return images
