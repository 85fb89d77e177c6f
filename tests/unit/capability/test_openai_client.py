"""Tests for the OpenAI capability client."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from dreamloom.core.capability.errors import GenerationEmptyError, ProviderError
from dreamloom.core.capability.models import Artifact, ImageConfig, ProviderType
from dreamloom.core.capability.openai import (
    OpenAICapabilityClient,
    _output_format,
    _select_api_size,
)
from dreamloom.core.orchestration.narrative import ScriptPlan
from tests.fixtures.capability import make_source_image


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _images_response(*payloads: str | None) -> MagicMock:
    response = MagicMock()
    items = []
    for payload in payloads:
        item = MagicMock()
        item.b64_json = payload
        items.append(item)
    response.data = items
    return response


def _make_async_client() -> MagicMock:
    """Build a mock AsyncOpenAI client with the used endpoints as AsyncMock."""
    mock_client = MagicMock()
    mock_client.images.generate = AsyncMock(return_value=_images_response(_b64(b"img")))
    mock_client.images.edit = AsyncMock(return_value=_images_response(_b64(b"edited")))
    mock_client.responses.create = AsyncMock(return_value=MagicMock(output_text="{}"))
    return mock_client


class TestSelectApiSize:
    def test_square(self) -> None:
        assert _select_api_size("1:1") == "1024x1024"

    def test_wide(self) -> None:
        assert _select_api_size("16:9") == "1536x1024"

    def test_tall(self) -> None:
        assert _select_api_size("3:4") == "1024x1536"


class TestOutputFormat:
    def test_supported(self) -> None:
        assert _output_format("image/jpeg") == ("jpeg", "image/jpeg")

    def test_unsupported_falls_back_to_png(self) -> None:
        assert _output_format("image/gif") == ("png", "image/png")


class TestGenerateImages:
    @pytest.mark.asyncio
    async def test_decodes_base64(self) -> None:
        mock_client = _make_async_client()
        mock_client.images.generate.return_value = _images_response(_b64(b"a"), _b64(b"b"))

        client = OpenAICapabilityClient(mock_client, image_model="gpt-image-test")
        result = await client.generate_images("koi", 2, ImageConfig(aspect_ratio="9:16"))

        assert result == [Artifact(data=b"a"), Artifact(data=b"b")]
        kwargs = mock_client.images.generate.call_args.kwargs
        assert kwargs["model"] == "gpt-image-test"
        assert kwargs["n"] == 2
        assert kwargs["size"] == "1024x1536"
        assert kwargs["output_format"] == "png"
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_missing_payloads_are_skipped(self) -> None:
        mock_client = _make_async_client()
        mock_client.images.generate.return_value = _images_response(None, _b64(b"b"))

        result = await OpenAICapabilityClient(mock_client).generate_images(
            "x", 2, ImageConfig()
        )

        assert result == [Artifact(data=b"b")]

    @pytest.mark.asyncio
    async def test_respects_limit_of_ten(self) -> None:
        with pytest.raises(ValueError):
            await OpenAICapabilityClient(_make_async_client()).generate_images(
                "x", 11, ImageConfig()
            )

    @pytest.mark.asyncio
    async def test_wraps_sdk_errors(self) -> None:
        mock_client = _make_async_client()
        mock_client.images.generate.side_effect = RuntimeError("rate limited")

        with pytest.raises(ProviderError) as exc_info:
            await OpenAICapabilityClient(mock_client).generate_images("x", 1, ImageConfig())

        assert exc_info.value.provider == "openai"
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_undecodable_payload(self) -> None:
        mock_client = _make_async_client()
        mock_client.images.generate.return_value = _images_response("!!not-base64!!")

        with pytest.raises(ProviderError):
            await OpenAICapabilityClient(mock_client).generate_images("x", 1, ImageConfig())


class TestGenerateText:
    @pytest.mark.asyncio
    async def test_json_schema_format(self) -> None:
        mock_client = _make_async_client()
        mock_client.responses.create.return_value = MagicMock(output_text='{"pages": ["a"]}')

        raw = await OpenAICapabilityClient(mock_client).generate_text("plan", ScriptPlan)

        assert raw == '{"pages": ["a"]}'
        text_format = mock_client.responses.create.call_args.kwargs["text"]["format"]
        assert text_format["type"] == "json_schema"
        assert text_format["name"] == "ScriptPlan"
        assert "pages" in text_format["schema"]["properties"]

    @pytest.mark.asyncio
    async def test_wraps_sdk_errors(self) -> None:
        mock_client = _make_async_client()
        mock_client.responses.create.side_effect = RuntimeError("boom")

        with pytest.raises(ProviderError) as exc_info:
            await OpenAICapabilityClient(mock_client).generate_text("plan", ScriptPlan)

        assert exc_info.value.operation == "generate_text"


class TestEditOrComposeImage:
    @pytest.mark.asyncio
    async def test_uploads_source_images(self) -> None:
        mock_client = _make_async_client()
        images = [make_source_image("a", "image/png"), make_source_image("b", "image/jpeg")]

        artifact = await OpenAICapabilityClient(mock_client).edit_or_compose_image(
            "fuse", images
        )

        assert artifact == Artifact(data=b"edited")
        kwargs = mock_client.images.edit.call_args.kwargs
        assert kwargs["image"] == [
            ("source.png", b"src-a", "image/png"),
            ("source.jpeg", b"src-b", "image/jpeg"),
        ]
        assert kwargs["n"] == 1
        assert kwargs["prompt"] == "fuse"

    @pytest.mark.asyncio
    async def test_empty_response(self) -> None:
        mock_client = _make_async_client()
        mock_client.images.edit.return_value = _images_response()

        with pytest.raises(GenerationEmptyError):
            await OpenAICapabilityClient(mock_client).edit_or_compose_image(
                "x", [make_source_image()]
            )


def test_provider_properties() -> None:
    client = OpenAICapabilityClient(_make_async_client())
    assert client.provider_type is ProviderType.OPENAI
    assert client.max_images_per_call == 10
