"""OpenAI capability client.

Async wrapper over ``AsyncOpenAI``:
- ``images.generate`` for text-to-image (``n`` images per call)
- ``responses.create`` with a JSON-schema text format for structured text
- ``images.edit`` with one or two source images for edit/compose

gpt-image models return base64 by default and only support a few sizes,
so the requested aspect ratio is mapped to the closest supported size.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

from openai import AsyncOpenAI
from pydantic import BaseModel

from dreamloom.core.capability.base import check_source_images
from dreamloom.core.capability.errors import GenerationEmptyError, ProviderError
from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType, SourceImage

logger = logging.getLogger(__name__)

# mime type -> gpt-image output_format
_OUTPUT_FORMATS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/webp": "webp",
}


def _select_api_size(aspect_ratio: str) -> str:
    """Map an aspect ratio ('W:H') to a supported gpt-image size.

    Example:
        >>> _select_api_size("1:1")
        '1024x1024'
        >>> _select_api_size("16:9")
        '1536x1024'
        >>> _select_api_size("9:16")
        '1024x1536'
    """
    width, height = (int(value) for value in aspect_ratio.split(":", 1))
    if width == height:
        return "1024x1024"
    elif width > height:
        return "1536x1024"
    else:
        return "1024x1536"


def _output_format(mime_type: str) -> tuple[str, str]:
    """Return (api output_format, artifact mime type); unsupported falls back to PNG."""
    if mime_type in _OUTPUT_FORMATS:
        return _OUTPUT_FORMATS[mime_type], mime_type
    logger.debug(f"Unsupported output format {mime_type!r}, using image/png")
    return "png", "image/png"


class OpenAICapabilityClient:
    """Capability client backed by the OpenAI SDK.

    Args:
        client: AsyncOpenAI client instance
        image_model: Image model for text-to-image
        edit_model: Image model for edit/compose
        text_model: Text model for structured output
        max_images_per_call: Provider per-call image limit L
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        image_model: str = "gpt-image-1",
        edit_model: str = "gpt-image-1",
        text_model: str = "gpt-4.1-mini",
        max_images_per_call: int = 10,
    ) -> None:
        self._client = client
        self._image_model = image_model
        self._edit_model = edit_model
        self._text_model = text_model
        self._max_images_per_call = max_images_per_call

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.OPENAI

    @property
    def max_images_per_call(self) -> int:
        return self._max_images_per_call

    def _provider_error(self, operation: str, e: Exception) -> ProviderError:
        logger.error(f"OpenAI {operation} failed: {e}")
        return ProviderError(
            f"OpenAI request failed: {e}",
            operation=operation,
            provider=self.provider_type.value,
            cause=e,
        )

    def _decode(self, operation: str, b64_items: list[str], mime_type: str) -> list[Artifact]:
        try:
            return [Artifact.from_base64(b64, mime_type) for b64 in b64_items]
        except ValueError as e:
            raise self._provider_error(operation, e) from e

    async def generate_images(
        self,
        prompt: str,
        count: int,
        config: ImageConfig,
    ) -> list[Artifact]:
        """Generate up to ``count`` images.

        Raises:
            ValueError: If count is outside 1..max_images_per_call
            ProviderError: On transport/remote failure
        """
        if not 1 <= count <= self._max_images_per_call:
            raise ValueError(
                f"count must be between 1 and {self._max_images_per_call}, got {count}"
            )

        output_format, mime_type = _output_format(config.output_format)

        try:
            response = await self._client.images.generate(
                model=self._image_model,
                prompt=prompt,
                n=count,
                size=_select_api_size(config.aspect_ratio),  # type: ignore[arg-type]
                output_format=output_format,  # type: ignore[arg-type]
            )
        except Exception as e:
            raise self._provider_error("generate_images", e) from e

        b64_items = [item.b64_json for item in response.data or [] if item.b64_json]
        artifacts = self._decode("generate_images", b64_items, mime_type)

        logger.debug(f"OpenAI returned {len(artifacts)}/{count} image(s)")
        return artifacts

    async def generate_text(self, prompt: str, schema: type[BaseModel]) -> str:
        """Generate JSON text constrained by ``schema``.

        Raises:
            ProviderError: On transport/remote failure
        """
        try:
            response = await self._client.responses.create(
                model=self._text_model,
                input=[{"role": "user", "content": prompt}],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": schema.__name__,
                        "schema": schema.model_json_schema(),
                        "strict": False,
                    }
                },
            )
        except Exception as e:
            raise self._provider_error("generate_text", e) from e

        return response.output_text or ""

    async def edit_or_compose_image(
        self,
        prompt: str,
        images: Sequence[SourceImage],
    ) -> Artifact:
        """Edit one image or fuse two into exactly one artifact.

        Raises:
            ValueError: If not given 1..2 source images
            GenerationEmptyError: If the response has no image
            ProviderError: On transport/remote failure
        """
        source_images = check_source_images(images)
        uploads = [(image.filename, image.data, image.mime_type) for image in source_images]

        try:
            response = await self._client.images.edit(
                model=self._edit_model,
                image=uploads,  # type: ignore[arg-type]
                prompt=prompt,
                n=1,
            )
        except Exception as e:
            raise self._provider_error("edit_or_compose_image", e) from e

        b64_items = [item.b64_json for item in response.data or [] if item.b64_json]
        if not b64_items:
            raise GenerationEmptyError(
                "Image editing failed or returned no image part.",
                operation="edit_or_compose_image",
                provider=self.provider_type.value,
            )
        return self._decode("edit_or_compose_image", b64_items[:1], "image/png")[0]
