"""Task-level generation service.

Each operation corresponds to one creative task and routes to exactly one
orchestration strategy:

- Batch fan-out: plain text-to-image requests
- Parallel replicas: edit, fusion and ad variants (one image per call)
- Narrative pipeline: multi-page manga
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging

from pydantic import BaseModel, ConfigDict, Field

from dreamloom.core.capability.base import GenerationCapability
from dreamloom.core.capability.models import Artifact, ImageConfig, SourceImage
from dreamloom.core.orchestration.batch import BatchFanOutExecutor
from dreamloom.core.orchestration.narrative import NarrativePipeline, ProgressCallback
from dreamloom.core.orchestration.policy import FailurePolicy
from dreamloom.core.orchestration.replica import ParallelReplicaExecutor
from dreamloom.core.prompts import (
    CommercialBrief,
    build_commercial_prompt,
    build_dream_photo_prompt,
    build_manga_theme_prompt,
    build_styled_dream_prompt,
)

logger = logging.getLogger(__name__)

CUSTOM_STYLE = "Custom..."


class DreamStyle(str, Enum):
    """Visual styles offered for dream visualization."""

    MANGA = "Manga"
    CINEMATIC = "Cinematic"
    STORYBOOK = "Storybook"
    SURREAL = "Surreal"
    FANTASY = "Fantasy"


class ArtStyle(str, Enum):
    """Art styles offered for photo styling."""

    GHIBLI = "Ghibli Studio"
    IMPRESSIONISM = "Impressionism"
    CUBISM = "Cubism"
    POP_ART = "Pop Art"
    STEAMPUNK = "Steampunk"
    SYNTHWAVE = "Synthwave"
    CUSTOM = CUSTOM_STYLE


class CommercialStyle(str, Enum):
    """Visual styles offered for advertisements."""

    PHOTOREALISTIC = "Photorealistic"
    VINTAGE = "Vintage Ad Style"
    ANIMATED = "3D Animated (Pixar Style)"
    MINIMALIST = "Modern & Minimalist"
    FUTURISTIC = "Sleek & Futuristic"
    WATERCOLOR = "Artistic Watercolor"
    CUSTOM = CUSTOM_STYLE


def resolve_style(style: ArtStyle | CommercialStyle, custom_style: str | None = None) -> str:
    """Return the style text to embed in a prompt.

    Raises:
        ValueError: If the custom style is selected without a description
    """
    if style.value != CUSTOM_STYLE:
        return style.value
    if not custom_style or not custom_style.strip():
        raise ValueError("A custom style description is required for the custom style")
    return custom_style.strip()


class DreamRequest(BaseModel):
    """A dream visualization request."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(min_length=1, description="Dream or story text")
    style: DreamStyle = DreamStyle.CINEMATIC
    quantity: int = Field(default=1, ge=0, description="Images (or manga pages) to produce")
    source_image: SourceImage | None = Field(
        default=None, description="Optional photo to redraw instead of generating from text"
    )


class GenerationService:
    """Routes creative tasks to the matching orchestration strategy.

    Args:
        capability: Injected capability client
        image_config: Output configuration for text-to-image calls
        max_images_per_call: Override for the batch per-call limit L
        batch_policy: Failure policy for batch fan-out
        replica_policy: Failure policy for parallel replicas
        max_concurrency: Optional cap on concurrent replica calls
    """

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        image_config: ImageConfig | None = None,
        max_images_per_call: int | None = None,
        batch_policy: FailurePolicy = FailurePolicy.BEST_EFFORT,
        replica_policy: FailurePolicy = FailurePolicy.ALL_OR_NOTHING,
        max_concurrency: int | None = None,
    ) -> None:
        self._capability = capability
        self._image_config = image_config or ImageConfig()
        self._batch = BatchFanOutExecutor(
            capability, max_images_per_call=max_images_per_call, policy=batch_policy
        )
        self._replica = ParallelReplicaExecutor(
            capability, policy=replica_policy, max_concurrency=max_concurrency
        )
        self._pipeline = NarrativePipeline(capability, image_config=self._image_config)

    @property
    def capability(self) -> GenerationCapability:
        return self._capability

    async def generate_images(
        self,
        prompt: str,
        quantity: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Plain text-to-image generation through batch fan-out."""
        return await self._batch.generate(
            prompt, quantity, self._image_config, cancel_token=cancel_token
        )

    async def visualize_dream(
        self,
        request: DreamRequest,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Visualize a dream.

        With a source photo the photo is redrawn (one replica per image).
        A multi-image manga request becomes a planned multi-page story.
        Everything else is a single text-to-image batch.

        Args:
            request: Dream request
            on_progress: Page progress callback (manga pages only)
            cancel_token: Optional cancellation token

        Returns:
            Generated artifacts in order
        """
        style = request.style

        if request.source_image is not None:
            logger.debug(f"Dream: redrawing photo in {style.value} style")
            prompt = build_dream_photo_prompt(request.description, style.value)
            return await self._replica.compose(
                prompt, [request.source_image], request.quantity, cancel_token=cancel_token
            )

        if style is DreamStyle.MANGA and request.quantity > 1:
            logger.debug(f"Dream: planning a {request.quantity}-page manga")
            return await self.generate_manga(
                request.description,
                request.quantity,
                on_progress=on_progress,
                cancel_token=cancel_token,
            )

        if style is DreamStyle.MANGA:
            prompt = build_manga_theme_prompt(request.description)
        else:
            prompt = build_styled_dream_prompt(request.description, style.value)
        return await self.generate_images(prompt, request.quantity, cancel_token=cancel_token)

    async def generate_manga(
        self,
        theme: str,
        pages: int,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Plan and render a ``pages``-page manga, one page at a time."""
        return await self._pipeline.run(
            theme, pages, on_progress=on_progress, cancel_token=cancel_token
        )

    async def style_image(
        self,
        source: SourceImage,
        prompt: str,
        quantity: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Restyle one photo ``quantity`` times (identity, art style, icons)."""
        return await self._replica.compose(
            prompt, [source], quantity, cancel_token=cancel_token
        )

    async def fuse_images(
        self,
        first: SourceImage,
        second: SourceImage,
        prompt: str,
        quantity: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Fuse two photos into ``quantity`` new images."""
        if not prompt.strip():
            raise ValueError("A prompt is required to guide the fusion")
        return await self._replica.compose(
            prompt, [first, second], quantity, cancel_token=cancel_token
        )

    async def create_commercial(
        self,
        brief: CommercialBrief,
        quantity: int,
        *,
        product_image: SourceImage | None = None,
        model_image: SourceImage | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Generate ``quantity`` advertisement variants.

        Reference images are sent product first, then model. Without any
        reference image the ad is generated from text alone.
        """
        prompt = build_commercial_prompt(
            brief,
            has_product_image=product_image is not None,
            has_model_image=model_image is not None,
        )
        images = [image for image in (product_image, model_image) if image is not None]

        if not images:
            logger.debug("Commercial: no reference images, using text-to-image")
            return await self.generate_images(prompt, quantity, cancel_token=cancel_token)

        logger.debug(f"Commercial: {quantity} variant(s) from {len(images)} reference image(s)")
        return await self._replica.compose(prompt, images, quantity, cancel_token=cancel_token)
