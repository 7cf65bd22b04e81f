from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
import replicate
from replicate.exceptions import ReplicateException

from ..errors import ProviderRequestError
from ..provider import ImageProvider
from ..types import ProviderImage, ProviderPayload, ReplicatePayload

logger = logging.getLogger(__name__)


def _output_url(item: Any) -> str:
    url = getattr(item, "url", None)
    return str(url) if url is not None else str(item)


def _as_items(output: Any) -> list[Any]:
    if output is None:
        return []
    if isinstance(output, (str, bytes)) or hasattr(output, "url"):
        return [output]
    return list(output)


class ReplicateProvider(ImageProvider):
    """Runs a Replicate model; images come back as URLs to download."""

    def __init__(self, api_key: str, client: Optional[replicate.Client] = None):
        self._client = client or replicate.Client(api_token=api_key)

    @property
    def provider_id(self) -> str:
        return "replicate"

    def generate(self, payload: ProviderPayload) -> list[ProviderImage]:
        if not isinstance(payload, ReplicatePayload):
            raise TypeError(f"ReplicateProvider cannot run a {payload.provider} payload")

        model_input = payload.to_input()
        logger.debug("run(%s, input=%s)", payload.model, model_input)
        try:
            output = self._client.run(payload.model, input=model_input)
            items = _as_items(output)
        except (ReplicateException, httpx.HTTPError) as e:
            raise ProviderRequestError(self.provider_id, str(e)) from e

        urls = [_output_url(item) for item in items if item]
        if not urls:
            raise ProviderRequestError(self.provider_id, "model returned no image URLs")
        return [ProviderImage(url=url) for url in urls]
