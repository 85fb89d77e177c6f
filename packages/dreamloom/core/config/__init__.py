"""Configuration management for Dreamloom."""

from dreamloom.core.config.loader import (
    configure_logging,
    get_api_key,
    load_app_config,
    load_config,
)
from dreamloom.core.config.models import (
    DEFAULT_MODELS,
    PROVIDER_IMAGE_CAPS,
    AppConfig,
    GenerationConfig,
    LoggingConfig,
    ModelConfig,
)

__all__ = [
    # Loaders
    "load_config",
    "load_app_config",
    "get_api_key",
    "configure_logging",
    # Models
    "AppConfig",
    "GenerationConfig",
    "LoggingConfig",
    "ModelConfig",
    "DEFAULT_MODELS",
    "PROVIDER_IMAGE_CAPS",
]
