"""Test fixtures for capability-driven code: an in-memory capability client."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel

from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType, SourceImage


def make_artifact(tag: str, mime_type: str = "image/png") -> Artifact:
    """Create an artifact whose bytes identify it in assertions."""
    return Artifact(data=f"img-{tag}".encode(), mime_type=mime_type)


def make_source_image(tag: str = "photo", mime_type: str = "image/jpeg") -> SourceImage:
    return SourceImage(data=f"src-{tag}".encode(), mime_type=mime_type)


# ============================================================================
# Fake Capability
# ============================================================================

EditHandler = Callable[[int, str, Sequence[SourceImage]], Awaitable[Artifact]]


class FakeCapability:
    """In-memory capability client that records every call.

    Args:
        image_results: Queued results for generate_images; each entry is a
            list of artifacts or an exception. When exhausted, returns
            ``count`` fresh artifacts.
        text_result: Result (or exception) for generate_text
        edit_handler: Coroutine called as (call_index, prompt, images) for
            edit_or_compose_image; defaults to one fresh artifact per call
    """

    def __init__(
        self,
        *,
        provider_type: ProviderType = ProviderType.GEMINI,
        max_images_per_call: int = 16,
        image_results: Sequence[list[Artifact] | Exception] | None = None,
        text_result: str | Exception = '{"pages": []}',
        edit_handler: EditHandler | None = None,
    ) -> None:
        self._provider_type = provider_type
        self._max_images_per_call = max_images_per_call
        self.image_results = list(image_results or [])
        self.text_result = text_result
        self.edit_handler = edit_handler
        self.calls: list[tuple[str, Any]] = []
        self.image_calls = 0
        self.edit_calls = 0

    @property
    def provider_type(self) -> ProviderType:
        return self._provider_type

    @property
    def max_images_per_call(self) -> int:
        return self._max_images_per_call

    async def generate_images(
        self, prompt: str, count: int, config: ImageConfig
    ) -> list[Artifact]:
        self.image_calls += 1
        self.calls.append(("generate_images", (prompt, count)))
        await asyncio.sleep(0)

        if self.image_results:
            result = self.image_results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return [make_artifact(f"{self.image_calls}-{i}") for i in range(count)]

    async def generate_text(self, prompt: str, schema: type[BaseModel]) -> str:
        self.calls.append(("generate_text", (prompt, schema)))
        await asyncio.sleep(0)

        if isinstance(self.text_result, Exception):
            raise self.text_result
        return self.text_result

    async def edit_or_compose_image(
        self, prompt: str, images: Sequence[SourceImage]
    ) -> Artifact:
        index = self.edit_calls
        self.edit_calls += 1
        self.calls.append(("edit_or_compose_image", (prompt, list(images))))

        if self.edit_handler is not None:
            return await self.edit_handler(index, prompt, images)
        await asyncio.sleep(0)
        return make_artifact(f"edit-{index}")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


__all__ = ["EditHandler", "FakeCapability", "make_artifact", "make_source_image"]
