"""Shared pytest fixtures for dreamloom tests."""

from __future__ import annotations

import pytest

from dreamloom.core.capability.models import SourceImage
from tests.fixtures.capability import FakeCapability, make_source_image


@pytest.fixture
def fake_capability() -> FakeCapability:
    """Default fake capability (Gemini, L=16, always succeeds)."""
    return FakeCapability()


@pytest.fixture
def source_image() -> SourceImage:
    return make_source_image()


@pytest.fixture(autouse=True)
def _clear_api_key_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real API keys out of tests."""
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
