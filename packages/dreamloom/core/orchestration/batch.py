"""Batch fan-out executor.

Satisfies a request for N images against a provider that accepts at most
L images per call by issuing ceil(N / L) strictly sequential chunk calls.
"""

from __future__ import annotations

import asyncio
import logging

from dreamloom.core.capability.base import GenerationCapability
from dreamloom.core.capability.errors import GenerationFailedError
from dreamloom.core.capability.models import Artifact, ImageConfig
from dreamloom.core.orchestration.cancellation import await_cancellable, raise_if_cancelled
from dreamloom.core.orchestration.policy import FailurePolicy

logger = logging.getLogger(__name__)

_OPERATION = "batch_generate"


def plan_chunks(quantity: int, limit: int) -> list[int]:
    """Split a quantity into per-call chunk sizes.

    All chunks but the last request exactly ``limit`` images; the last
    requests the remainder (or ``limit`` on an exact multiple).

    Args:
        quantity: Requested number of images (>= 0)
        limit: Per-call provider limit L (> 0)

    Returns:
        Chunk sizes in issue order (empty for quantity 0)

    Example:
        >>> plan_chunks(18, 16)
        [16, 2]
        >>> plan_chunks(32, 16)
        [16, 16]
    """
    if limit <= 0:
        raise ValueError(f"Per-call limit must be positive, got {limit}")
    if quantity < 0:
        raise ValueError(f"Quantity must be non-negative, got {quantity}")

    chunks: list[int] = []
    remaining = quantity
    while remaining > 0:
        chunk = min(remaining, limit)
        chunks.append(chunk)
        remaining -= chunk
    return chunks


class BatchFanOutExecutor:
    """Issues bounded chunk calls and concatenates their artifacts.

    Chunks are never issued concurrently: each chunk's result is observed
    before the next one is sent so an empty chunk can stop the batch early.

    With the default ``BEST_EFFORT`` policy an empty chunk after at least
    one productive chunk stops the batch and returns the partial result;
    an empty first chunk is fatal. ``ALL_OR_NOTHING`` fails on any empty
    chunk. A chunk call that raises always fails the batch.

    Args:
        capability: Injected capability client
        max_images_per_call: Override for L (defaults to the client's limit)
        policy: Failure policy for empty chunks

    Example:
        >>> executor = BatchFanOutExecutor(client)
        >>> artifacts = await executor.generate("a neon koi pond", 18, ImageConfig())
    """

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        max_images_per_call: int | None = None,
        policy: FailurePolicy = FailurePolicy.BEST_EFFORT,
    ) -> None:
        self._capability = capability
        self._limit = max_images_per_call or capability.max_images_per_call
        self._policy = policy
        if self._limit <= 0:
            raise ValueError(f"Per-call limit must be positive, got {self._limit}")

    @property
    def limit(self) -> int:
        """Per-call image limit L."""
        return self._limit

    @property
    def policy(self) -> FailurePolicy:
        return self._policy

    async def generate(
        self,
        prompt: str,
        quantity: int,
        config: ImageConfig | None = None,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Generate ``quantity`` images from one prompt.

        Args:
            prompt: Text prompt shared by every chunk
            quantity: Requested number of images (0 returns [] without calling)
            config: Output configuration (defaults to PNG, 1:1)
            cancel_token: Optional cancellation token

        Returns:
            Artifacts in chunk-issue order, provider order within a chunk

        Raises:
            GenerationFailedError: If no artifacts were produced (or an empty
                chunk under ALL_OR_NOTHING)
            ProviderError: If any chunk call fails
            GenerationCancelledError: If cancel_token fires
        """
        chunks = plan_chunks(quantity, self._limit)
        if not chunks:
            return []

        config = config or ImageConfig()
        accumulated: list[Artifact] = []

        logger.debug(
            f"Batch: {quantity} images in {len(chunks)} chunk(s) of up to {self._limit}"
        )

        for index, chunk in enumerate(chunks, start=1):
            raise_if_cancelled(cancel_token, _OPERATION)

            logger.debug(f"Batch chunk {index}/{len(chunks)}: requesting {chunk} image(s)")
            artifacts = await await_cancellable(
                self._capability.generate_images(prompt, chunk, config),
                cancel_token,
                operation=_OPERATION,
            )

            if artifacts:
                accumulated.extend(artifacts)
                continue

            if not accumulated:
                raise GenerationFailedError(
                    "Image generation failed or returned no images on the first attempt.",
                    operation=_OPERATION,
                    provider=self._capability.provider_type.value,
                )

            if self._policy is FailurePolicy.ALL_OR_NOTHING:
                raise GenerationFailedError(
                    f"Image generation chunk {index}/{len(chunks)} returned no images.",
                    operation=_OPERATION,
                    provider=self._capability.provider_type.value,
                )

            logger.warning(
                f"A subsequent batch of image generation returned no images. "
                f"Returning {len(accumulated)} images."
            )
            break

        if not accumulated:
            raise GenerationFailedError(
                "Image generation failed to produce any images.",
                operation=_OPERATION,
                provider=self._capability.provider_type.value,
            )

        return accumulated
