"""Protocol for remote generation capabilities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel

from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType, SourceImage


class GenerationCapability(Protocol):
    """Thin adapter around a remote generation provider.

    Each method is a single, unreliable network call. Implementations keep
    no state between calls and never retry; retries and partial-failure
    handling belong to the executors.

    Implementations must:
    - Wrap transport/remote failures in ``ProviderError``
    - Let ``asyncio.CancelledError`` propagate untouched
    """

    @property
    def provider_type(self) -> ProviderType:
        """Provider type identifier."""
        ...

    @property
    def max_images_per_call(self) -> int:
        """Hard per-call image limit L enforced by the provider."""
        ...

    async def generate_images(
        self,
        prompt: str,
        count: int,
        config: ImageConfig,
    ) -> list[Artifact]:
        """Generate up to ``count`` images from a text prompt.

        The provider may return fewer artifacts than requested, or none.

        Args:
            prompt: Text prompt
            count: Requested number of images (1..max_images_per_call)
            config: Output format and aspect ratio

        Returns:
            Artifacts in provider order (possibly empty)

        Raises:
            ProviderError: On transport/remote failure
        """
        ...

    async def generate_text(self, prompt: str, schema: type[BaseModel]) -> str:
        """Generate structured text conforming to ``schema``.

        The shape is requested from the provider but not validated here.

        Args:
            prompt: Text prompt
            schema: Pydantic model describing the requested response shape

        Returns:
            Raw response text (expected to be JSON)

        Raises:
            ProviderError: On transport/remote failure
        """
        ...

    async def edit_or_compose_image(
        self,
        prompt: str,
        images: Sequence[SourceImage],
    ) -> Artifact:
        """Edit one image or compose two images into exactly one artifact.

        Args:
            prompt: Edit/fusion instruction
            images: One or two source images

        Returns:
            The single image part of the response

        Raises:
            GenerationEmptyError: If the response contains no image part
            ProviderError: On transport/remote failure
        """
        ...


MAX_SOURCE_IMAGES = 2


def check_source_images(images: Sequence[SourceImage]) -> list[SourceImage]:
    """Validate the 1..2 source images accepted by edit/compose calls.

    Raises:
        ValueError: If fewer than one or more than two images are given
    """
    source_images = list(images)
    if not 1 <= len(source_images) <= MAX_SOURCE_IMAGES:
        raise ValueError(
            f"Edit/compose requires 1 to {MAX_SOURCE_IMAGES} source images, "
            f"got {len(source_images)}"
        )
    return source_images
