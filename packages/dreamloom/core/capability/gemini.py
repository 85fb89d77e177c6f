"""Gemini / Imagen capability client.

Async wrapper over ``google.genai.Client.aio``:
- Imagen ``generate_images`` for text-to-image (up to 16 images per call)
- Gemini ``generate_content`` with a JSON response schema for structured text
- Gemini image model ``generate_content`` with image parts for edit/compose
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

from google import genai
from google.genai import types
from pydantic import BaseModel

from dreamloom.core.capability.base import check_source_images
from dreamloom.core.capability.errors import GenerationEmptyError, ProviderError
from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType, SourceImage

logger = logging.getLogger(__name__)


class GeminiCapabilityClient:
    """Capability client backed by the Google GenAI SDK.

    Args:
        client: google-genai client instance
        image_model: Imagen model for text-to-image
        edit_model: Gemini image model for edit/compose
        text_model: Gemini text model for structured output
        max_images_per_call: Provider per-call image limit L
    """

    def __init__(
        self,
        client: genai.Client,
        *,
        image_model: str = "imagen-4.0-generate-001",
        edit_model: str = "gemini-2.5-flash-image-preview",
        text_model: str = "gemini-2.5-flash",
        max_images_per_call: int = 16,
    ) -> None:
        self._client = client
        self._image_model = image_model
        self._edit_model = edit_model
        self._text_model = text_model
        self._max_images_per_call = max_images_per_call

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.GEMINI

    @property
    def max_images_per_call(self) -> int:
        return self._max_images_per_call

    def _provider_error(self, operation: str, e: Exception) -> ProviderError:
        logger.error(f"Gemini {operation} failed: {e}")
        return ProviderError(
            f"Gemini request failed: {e}",
            operation=operation,
            provider=self.provider_type.value,
            cause=e,
        )

    async def generate_images(
        self,
        prompt: str,
        count: int,
        config: ImageConfig,
    ) -> list[Artifact]:
        """Generate up to ``count`` images with Imagen.

        Raises:
            ValueError: If count is outside 1..max_images_per_call
            ProviderError: On transport/remote failure
        """
        if not 1 <= count <= self._max_images_per_call:
            raise ValueError(
                f"count must be between 1 and {self._max_images_per_call}, got {count}"
            )

        try:
            response = await self._client.aio.models.generate_images(
                model=self._image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=count,
                    output_mime_type=config.output_format,
                    aspect_ratio=config.aspect_ratio,
                ),
            )
        except Exception as e:
            raise self._provider_error("generate_images", e) from e

        artifacts: list[Artifact] = []
        for generated in response.generated_images or []:
            image = generated.image
            if image is None or not image.image_bytes:
                continue
            artifacts.append(
                Artifact(data=image.image_bytes, mime_type=image.mime_type or config.output_format)
            )

        logger.debug(f"Imagen returned {len(artifacts)}/{count} image(s)")
        return artifacts

    async def generate_text(self, prompt: str, schema: type[BaseModel]) -> str:
        """Generate JSON text constrained by ``schema``.

        Raises:
            ProviderError: On transport/remote failure
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._text_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as e:
            raise self._provider_error("generate_text", e) from e

        return response.text or ""

    async def edit_or_compose_image(
        self,
        prompt: str,
        images: Sequence[SourceImage],
    ) -> Artifact:
        """Edit one image or fuse two, returning the first image part.

        Raises:
            ValueError: If not given 1..2 source images
            GenerationEmptyError: If the response has no image part
            ProviderError: On transport/remote failure
        """
        source_images = check_source_images(images)

        parts = [
            types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
            for image in source_images
        ]
        parts.append(types.Part.from_text(text=prompt))

        try:
            response = await self._client.aio.models.generate_content(
                model=self._edit_model,
                contents=[types.Content(role="user", parts=parts)],
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except Exception as e:
            raise self._provider_error("edit_or_compose_image", e) from e

        candidates = response.candidates or []
        content = candidates[0].content if candidates else None
        for part in (content.parts if content else None) or []:
            if part.inline_data is not None and part.inline_data.data:
                return Artifact(
                    data=part.inline_data.data,
                    mime_type=part.inline_data.mime_type or "image/png",
                )

        raise GenerationEmptyError(
            "Image editing failed or returned no image part.",
            operation="edit_or_compose_image",
            provider=self.provider_type.value,
        )
