"""Configuration models for Dreamloom."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dreamloom.core.capability.models import ImageConfig, ProviderType

# Hard per-call image caps enforced by each provider
PROVIDER_IMAGE_CAPS: dict[ProviderType, int] = {
    ProviderType.GEMINI: 16,
    ProviderType.OPENAI: 10,
}


class ModelConfig(BaseModel):
    """Remote model identifiers.

    Any field left as None falls back to the provider default
    (see :data:`DEFAULT_MODELS`).
    """

    image_model: str | None = Field(default=None, description="Text-to-image model")
    edit_model: str | None = Field(
        default=None, description="Single-artifact edit/compose model"
    )
    text_model: str | None = Field(default=None, description="Structured text model")


DEFAULT_MODELS: dict[ProviderType, ModelConfig] = {
    ProviderType.GEMINI: ModelConfig(
        image_model="imagen-4.0-generate-001",
        edit_model="gemini-2.5-flash-image-preview",
        text_model="gemini-2.5-flash",
    ),
    ProviderType.OPENAI: ModelConfig(
        image_model="gpt-image-1",
        edit_model="gpt-image-1",
        text_model="gpt-4.1-mini",
    ),
}


class GenerationConfig(BaseModel):
    """Generation limits and output defaults."""

    max_images_per_call: int = Field(
        default=16, gt=0, description="Per-call image limit L (clamped to the provider cap)"
    )
    output_format: str = Field(default="image/png", description="Default output mime type")
    aspect_ratio: str = Field(default="1:1", pattern=r"^\d+:\d+$")
    timeout_seconds: float = Field(default=300.0, gt=0, description="Remote call timeout")

    def image_config(self) -> ImageConfig:
        """Default per-call image configuration."""
        return ImageConfig(output_format=self.output_format, aspect_ratio=self.aspect_ratio)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")


class AppConfig(BaseModel):
    """Application-level configuration (shared by every request)."""

    model_config = ConfigDict(extra="ignore")

    provider: ProviderType = ProviderType.GEMINI
    api_key: str | None = Field(default=None, repr=False)
    output_dir: str = "artifacts"
    models: ModelConfig = ModelConfig()
    generation: GenerationConfig = GenerationConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _fill_model_defaults(self) -> AppConfig:
        defaults = DEFAULT_MODELS[self.provider]
        self.models = ModelConfig(
            image_model=self.models.image_model or defaults.image_model,
            edit_model=self.models.edit_model or defaults.edit_model,
            text_model=self.models.text_model or defaults.text_model,
        )
        return self

    @property
    def max_images_per_call(self) -> int:
        """Effective per-call limit: configured L clamped to the provider cap."""
        return min(self.generation.max_images_per_call, PROVIDER_IMAGE_CAPS[self.provider])

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("config.json")

    @classmethod
    def load_or_default(cls, path: Path | str | None = None) -> Self:
        """Load config from path, or the default path, falling back to defaults.

        Raises:
            FileNotFoundError: If an explicit path doesn't exist
            ValidationError: If config is invalid
        """
        from dreamloom.core.config.loader import load_app_config

        return load_app_config(path)  # type: ignore[return-value]
