from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .types import PROVIDERS

CONFIG_FILENAME = "ai-image.toml"

DEFAULT_OPENAI_MODEL = "gpt-image-1"
DEFAULT_REPLICATE_MODEL = (
    "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
)


class OpenAIProviderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    api_key_env: str = "OPENAI_API_KEY"
    model: str = DEFAULT_OPENAI_MODEL


class ReplicateProviderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    api_key_env: str = "REPLICATE_API_TOKEN"
    model: str = DEFAULT_REPLICATE_MODEL


class ProvidersConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    openai: OpenAIProviderConfig = OpenAIProviderConfig()
    replicate: ReplicateProviderConfig = ReplicateProviderConfig()


class AIImageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    default_provider: str = "openai"
    output_dir: Optional[Path] = None
    providers: ProvidersConfig = ProvidersConfig()

    @field_validator("default_provider")
    @classmethod
    def validate_default_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PROVIDERS:
            raise ValueError(
                f"default_provider '{v}' is not supported. "
                f"Available providers: {sorted(PROVIDERS)}"
            )
        return v

    def api_key_env(self, provider: str) -> Optional[str]:
        if provider == "openai":
            return self.providers.openai.api_key_env
        if provider == "replicate":
            return self.providers.replicate.api_key_env
        return None

    def default_model(self, provider: str) -> Optional[str]:
        if provider == "openai":
            return self.providers.openai.model
        if provider == "replicate":
            return self.providers.replicate.model
        return None


class ConfigError(Exception):
    def __init__(self, message: str, path: Optional[Path] = None, line: Optional[int] = None):
        self.path = path
        self.line = line
        if path:
            loc = f"{path}"
            if line:
                loc += f":{line}"
            message = f"{loc}: {message}"
        super().__init__(message)


def load_config(config_path: Optional[Path] = None) -> AIImageConfig:
    """Load ``ai-image.toml``; a missing file yields the built-in defaults."""
    if config_path is None:
        config_path = find_config()
        if config_path is None:
            return AIImageConfig()
    elif not config_path.exists():
        raise ConfigError("Config file not found", path=config_path)

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore

    try:
        text = config_path.read_text(encoding="utf-8")
        data = tomllib.loads(text)
    except Exception as e:
        raise ConfigError(f"Failed to parse TOML: {e}", path=config_path) from e

    try:
        return AIImageConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}", path=config_path) from e


def find_config(start_dir: Optional[Path] = None) -> Optional[Path]:
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent
