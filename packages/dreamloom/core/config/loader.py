"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from dreamloom.core.capability.models import ProviderType
from dreamloom.core.config.models import AppConfig
from dreamloom.core.utils.logging import configure_logging as _configure_logging

logger = logging.getLogger(__name__)

# Environment variables searched (in order) for each provider's API key
_API_KEY_ENV_VARS: dict[ProviderType, tuple[str, ...]] = {
    ProviderType.GEMINI: ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    ProviderType.OPENAI: ("OPENAI_API_KEY",),
}


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("config.json")
        'json'
        >>> detect_format("config.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        # safe_load returns None for empty files
        if content is None:
            content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}, got {type(content).__name__}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing default ``config.json`` is not an error: all defaults are used.
    The provider API key is read from the environment when not set in the file.

    Args:
        path: Path to app config file (.json, .yaml, or .yml).
              Defaults to config.json

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValidationError: If config is invalid
    """
    if path is None:
        path = AppConfig.default_path()
        config = AppConfig.model_validate(load_config(path)) if path.exists() else AppConfig()
    else:
        config = AppConfig.model_validate(load_config(path))

    return _load_env_vars_into_config(config)


def get_api_key(provider: ProviderType) -> str | None:
    """Get the provider API key from the environment.

    Returns:
        API key or None if not set
    """
    for env_var in _API_KEY_ENV_VARS[provider]:
        value = os.getenv(env_var)
        if value:
            logger.debug(f"Loaded {env_var} from environment")
            return value
    return None


def _load_env_vars_into_config(config: AppConfig) -> AppConfig:
    """Return config with the API key filled from the environment if unset."""
    if config.api_key:
        return config

    api_key = get_api_key(config.provider)
    if api_key is None:
        return config
    return config.model_copy(update={"api_key": api_key})


def configure_logging(config: AppConfig | None = None) -> None:
    """Configure Python logging from app config.

    Args:
        config: AppConfig instance (loads default if None)
    """
    if config is None:
        config = load_app_config()

    _configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        structured=config.logging.structured,
    )
