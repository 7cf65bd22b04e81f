from __future__ import annotations

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError
from replicate.exceptions import ReplicateException

from ai_image_cli.gen.config import AIImageConfig
from ai_image_cli.gen.errors import (
    MissingCredentialError,
    ProviderRequestError,
    UnsupportedProviderError,
)
from ai_image_cli.gen.providers.openai_images import OpenAIProvider
from ai_image_cli.gen.providers.replicate_models import ReplicateProvider
from ai_image_cli.gen.registry import ProviderRegistry
from ai_image_cli.gen.types import OpenAIPayload, ReplicatePayload


def openai_payload(**overrides) -> OpenAIPayload:
    fields = dict(model="gpt-image-1", prompt="a fox", size="1024x1024", quality="auto", n=1)
    fields.update(overrides)
    return OpenAIPayload(**fields)


def replicate_payload() -> ReplicatePayload:
    return ReplicatePayload(
        model="stability-ai/sdxl", prompt="a fox", width=512, height=768, num_outputs=2
    )


class TestProviderRegistry:
    def test_get_openai_provider(self) -> None:
        registry = ProviderRegistry(AIImageConfig(), {"openai": "sk-test"})
        provider = registry.get_provider("openai")

        assert isinstance(provider, OpenAIProvider)
        assert provider.provider_id == "openai"

    def test_get_replicate_provider(self) -> None:
        registry = ProviderRegistry(AIImageConfig(), {"replicate": "r8-test"})
        provider = registry.get_provider("replicate")

        assert isinstance(provider, ReplicateProvider)
        assert provider.provider_id == "replicate"

    def test_unknown_provider_produces_error(self) -> None:
        registry = ProviderRegistry(AIImageConfig(), {"openai": "sk-test"})

        with pytest.raises(UnsupportedProviderError) as exc_info:
            registry.get_provider("nonexistent")

        error_msg = str(exc_info.value)
        assert "nonexistent" in error_msg
        assert "replicate" in error_msg

    def test_missing_key_names_env_var(self) -> None:
        registry = ProviderRegistry(AIImageConfig(), {})

        with pytest.raises(MissingCredentialError) as exc_info:
            registry.get_provider("replicate")
        assert "REPLICATE_API_TOKEN" in str(exc_info.value)

    def test_provider_is_cached(self) -> None:
        registry = ProviderRegistry(AIImageConfig(), {"openai": "sk-test"})

        provider1 = registry.get_provider("openai")
        provider2 = registry.get_provider("openai")

        assert provider1 is provider2


class TestOpenAIProvider:
    def test_decodes_inline_images(self) -> None:
        client = MagicMock()
        client.images.generate.return_value = SimpleNamespace(
            data=[
                SimpleNamespace(b64_json=base64.b64encode(b"first").decode()),
                SimpleNamespace(b64_json=base64.b64encode(b"second").decode()),
            ]
        )
        provider = OpenAIProvider("sk-test", client=client)

        images = provider.generate(openai_payload(n=2, output_format="webp"))

        assert [img.data for img in images] == [b"first", b"second"]
        assert not any(img.is_remote for img in images)
        client.images.generate.assert_called_once_with(
            model="gpt-image-1",
            prompt="a fox",
            size="1024x1024",
            quality="auto",
            n=2,
            output_format="webp",
        )

    def test_skips_entries_without_data(self) -> None:
        client = MagicMock()
        client.images.generate.return_value = SimpleNamespace(
            data=[
                SimpleNamespace(b64_json=None),
                SimpleNamespace(b64_json=base64.b64encode(b"ok").decode()),
            ]
        )
        images = OpenAIProvider("sk-test", client=client).generate(openai_payload())
        assert [img.data for img in images] == [b"ok"]

    def test_no_image_data_is_an_error(self) -> None:
        client = MagicMock()
        client.images.generate.return_value = SimpleNamespace(data=[])
        with pytest.raises(ProviderRequestError) as exc_info:
            OpenAIProvider("sk-test", client=client).generate(openai_payload())
        assert "no image data" in str(exc_info.value)

    def test_sdk_error_is_wrapped(self) -> None:
        client = MagicMock()
        client.images.generate.side_effect = OpenAIError("quota exceeded")
        with pytest.raises(ProviderRequestError) as exc_info:
            OpenAIProvider("sk-test", client=client).generate(openai_payload())
        assert "quota exceeded" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OpenAIError)

    def test_rejects_replicate_payload(self) -> None:
        with pytest.raises(TypeError):
            OpenAIProvider("sk-test", client=MagicMock()).generate(replicate_payload())


class TestReplicateProvider:
    def test_returns_urls_from_file_outputs(self) -> None:
        client = MagicMock()
        client.run.return_value = [
            SimpleNamespace(url="https://replicate.delivery/a.png"),
            SimpleNamespace(url="https://replicate.delivery/b.png"),
        ]
        provider = ReplicateProvider("r8-test", client=client)

        images = provider.generate(replicate_payload())

        assert [img.url for img in images] == [
            "https://replicate.delivery/a.png",
            "https://replicate.delivery/b.png",
        ]
        assert all(img.is_remote for img in images)
        client.run.assert_called_once_with(
            "stability-ai/sdxl",
            input={"prompt": "a fox", "width": 512, "height": 768, "num_outputs": 2},
        )

    def test_accepts_plain_string_output(self) -> None:
        client = MagicMock()
        client.run.return_value = "https://replicate.delivery/only.png"
        images = ReplicateProvider("r8-test", client=client).generate(replicate_payload())
        assert [img.url for img in images] == ["https://replicate.delivery/only.png"]

    def test_empty_output_is_an_error(self) -> None:
        client = MagicMock()
        client.run.return_value = []
        with pytest.raises(ProviderRequestError):
            ReplicateProvider("r8-test", client=client).generate(replicate_payload())

    def test_sdk_error_is_wrapped(self) -> None:
        client = MagicMock()
        client.run.side_effect = ReplicateException("model not found")
        with pytest.raises(ProviderRequestError) as exc_info:
            ReplicateProvider("r8-test", client=client).generate(replicate_payload())
        assert "model not found" in str(exc_info.value)
        assert "replicate" in str(exc_info.value)
