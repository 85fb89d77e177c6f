"""Remote generation capabilities (text-to-image, structured text, edit/compose)."""

from dreamloom.core.capability.base import MAX_SOURCE_IMAGES, GenerationCapability
from dreamloom.core.capability.errors import (
    GenerationCancelledError,
    GenerationEmptyError,
    GenerationError,
    GenerationErrorData,
    GenerationFailedError,
    MalformedPlanError,
    ProviderError,
)
from dreamloom.core.capability.gemini import GeminiCapabilityClient
from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType, SourceImage
from dreamloom.core.capability.openai import OpenAICapabilityClient

__all__ = [
    # Interface
    "GenerationCapability",
    "MAX_SOURCE_IMAGES",
    # Models
    "Artifact",
    "ImageConfig",
    "ProviderType",
    "SourceImage",
    # Clients
    "GeminiCapabilityClient",
    "OpenAICapabilityClient",
    # Errors
    "GenerationError",
    "GenerationErrorData",
    "ProviderError",
    "GenerationEmptyError",
    "GenerationFailedError",
    "MalformedPlanError",
    "GenerationCancelledError",
]
