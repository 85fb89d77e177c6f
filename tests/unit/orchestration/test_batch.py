"""Tests for the batch fan-out executor."""

from __future__ import annotations

import asyncio

import pytest

from dreamloom.core.capability.errors import (
    GenerationCancelledError,
    GenerationFailedError,
    ProviderError,
)
from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType
from dreamloom.core.orchestration.batch import BatchFanOutExecutor, plan_chunks
from dreamloom.core.orchestration.policy import FailurePolicy
from tests.fixtures.capability import FakeCapability, make_artifact


def _artifacts(prefix: str, count: int) -> list[Artifact]:
    return [make_artifact(f"{prefix}-{i}") for i in range(count)]


class TestPlanChunks:
    def test_remainder_goes_last(self) -> None:
        assert plan_chunks(18, 16) == [16, 2]

    def test_exact_multiple(self) -> None:
        assert plan_chunks(32, 16) == [16, 16]

    def test_under_limit_is_single_chunk(self) -> None:
        assert plan_chunks(5, 16) == [5]

    def test_zero_quantity_has_no_chunks(self) -> None:
        assert plan_chunks(0, 16) == []

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError, match="limit"):
            plan_chunks(4, 0)

    def test_negative_quantity(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            plan_chunks(-1, 16)


class TestBatchFanOutExecutor:
    def test_limit_defaults_to_capability(self) -> None:
        executor = BatchFanOutExecutor(FakeCapability(max_images_per_call=10))
        assert executor.limit == 10
        assert executor.policy is FailurePolicy.BEST_EFFORT

    def test_limit_override(self) -> None:
        executor = BatchFanOutExecutor(FakeCapability(), max_images_per_call=4)
        assert executor.limit == 4

    @pytest.mark.asyncio
    async def test_eighteen_images_in_two_chunks(self) -> None:
        first, second = _artifacts("a", 16), _artifacts("b", 2)
        capability = FakeCapability(image_results=[first, second])

        result = await BatchFanOutExecutor(capability).generate("koi pond", 18)

        assert [count for _, (_, count) in capability.calls] == [16, 2]
        assert result == first + second

    @pytest.mark.asyncio
    async def test_zero_quantity_makes_no_calls(self, fake_capability: FakeCapability) -> None:
        result = await BatchFanOutExecutor(fake_capability).generate("anything", 0)

        assert result == []
        assert fake_capability.calls == []

    @pytest.mark.asyncio
    async def test_every_chunk_uses_the_same_prompt_and_config(self) -> None:
        seen: list[tuple[str, ImageConfig]] = []

        class RecordingCapability(FakeCapability):
            async def generate_images(self, prompt, count, config):  # type: ignore[override]
                seen.append((prompt, config))
                return await super().generate_images(prompt, count, config)

        config = ImageConfig(aspect_ratio="16:9")
        await BatchFanOutExecutor(RecordingCapability(max_images_per_call=2)).generate(
            "skyline", 5, config
        )

        assert seen == [("skyline", config)] * 3

    @pytest.mark.asyncio
    async def test_empty_first_chunk_is_fatal(self) -> None:
        capability = FakeCapability(image_results=[[]])

        with pytest.raises(GenerationFailedError) as exc_info:
            await BatchFanOutExecutor(capability).generate("nothing", 18)

        assert str(exc_info.value) == (
            "Image generation failed or returned no images on the first attempt."
        )
        assert exc_info.value.provider == "gemini"
        assert capability.image_calls == 1

    @pytest.mark.asyncio
    async def test_later_empty_chunk_returns_partial(self) -> None:
        first = _artifacts("a", 16)
        capability = FakeCapability(image_results=[first, []])

        result = await BatchFanOutExecutor(capability).generate("partial", 40)

        assert result == first
        # Third chunk is never issued
        assert capability.image_calls == 2

    @pytest.mark.asyncio
    async def test_later_empty_chunk_fails_all_or_nothing(self) -> None:
        capability = FakeCapability(image_results=[_artifacts("a", 16), []])
        executor = BatchFanOutExecutor(capability, policy=FailurePolicy.ALL_OR_NOTHING)

        with pytest.raises(GenerationFailedError, match="chunk 2/3"):
            await executor.generate("strict", 40)

    @pytest.mark.asyncio
    async def test_short_chunk_is_kept(self) -> None:
        capability = FakeCapability(image_results=[_artifacts("a", 3), _artifacts("b", 2)])

        result = await BatchFanOutExecutor(capability).generate("short", 18)

        assert len(result) == 5

    @pytest.mark.asyncio
    async def test_chunk_error_fails_batch(self) -> None:
        error = ProviderError("boom", operation="generate_images", provider="gemini")
        capability = FakeCapability(image_results=[_artifacts("a", 16), error])

        with pytest.raises(ProviderError) as exc_info:
            await BatchFanOutExecutor(capability).generate("flaky", 18)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_openai_limit_chunks_by_ten(self) -> None:
        capability = FakeCapability(provider_type=ProviderType.OPENAI, max_images_per_call=10)

        result = await BatchFanOutExecutor(capability).generate("ten at a time", 25)

        assert [count for _, (_, count) in capability.calls] == [10, 10, 5]
        assert len(result) == 25

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, fake_capability: FakeCapability) -> None:
        token = asyncio.Event()
        token.set()

        with pytest.raises(GenerationCancelledError):
            await BatchFanOutExecutor(fake_capability).generate("x", 4, cancel_token=token)

        assert fake_capability.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_between_chunks(self) -> None:
        token = asyncio.Event()

        class CancellingCapability(FakeCapability):
            async def generate_images(self, prompt, count, config):  # type: ignore[override]
                result = await super().generate_images(prompt, count, config)
                token.set()
                return result

        capability = CancellingCapability()

        with pytest.raises(GenerationCancelledError):
            await BatchFanOutExecutor(capability).generate("x", 40, cancel_token=token)

        assert capability.image_calls == 1
