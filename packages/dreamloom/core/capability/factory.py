"""Capability factory for provider dispatch."""

from __future__ import annotations

import logging

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from dreamloom.core.capability.base import GenerationCapability
from dreamloom.core.capability.gemini import GeminiCapabilityClient
from dreamloom.core.capability.models import ProviderType
from dreamloom.core.capability.openai import OpenAICapabilityClient
from dreamloom.core.config.models import AppConfig

logger = logging.getLogger(__name__)


def create_capability(app_config: AppConfig) -> GenerationCapability:
    """Create the configured capability client.

    Raises:
        ValueError: If the API key is missing or the provider is unknown
    """
    if not app_config.api_key:
        raise ValueError(
            f"No API key configured for provider '{app_config.provider.value}'. "
            "Set it in the config file or the provider's API key environment variable."
        )

    models = app_config.models
    timeout = app_config.generation.timeout_seconds
    logger.debug(
        f"Creating {app_config.provider.value} capability "
        f"(L={app_config.max_images_per_call}, timeout={timeout}s)"
    )

    if app_config.provider is ProviderType.GEMINI:
        client = genai.Client(
            api_key=app_config.api_key,
            # google-genai expects milliseconds
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )
        return GeminiCapabilityClient(
            client,
            image_model=models.image_model or "",
            edit_model=models.edit_model or "",
            text_model=models.text_model or "",
            max_images_per_call=app_config.max_images_per_call,
        )

    if app_config.provider is ProviderType.OPENAI:
        return OpenAICapabilityClient(
            AsyncOpenAI(api_key=app_config.api_key, timeout=timeout),
            image_model=models.image_model or "",
            edit_model=models.edit_model or "",
            text_model=models.text_model or "",
            max_images_per_call=app_config.max_images_per_call,
        )

    raise ValueError(f"Unknown provider configured: {app_config.provider}")
