"""Data models shared by capability clients and executors.

Artifacts travel as raw bytes plus mime type and are exposed to callers
as data URIs (directly displayable by a browser ``<img>`` tag).
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

_DATA_URI_PREFIX = "data:"
_BASE64_MARKER = ";base64,"


class ProviderType(str, Enum):
    """Supported capability providers."""

    GEMINI = "gemini"
    OPENAI = "openai"


def _split_data_uri(uri: str) -> tuple[str, str]:
    """Split ``data:<mime>;base64,<payload>`` into (mime, payload).

    Raises:
        ValueError: If the URI is not a base64 data URI
    """
    if not uri.startswith(_DATA_URI_PREFIX) or _BASE64_MARKER not in uri:
        raise ValueError("Expected a base64 data URI (data:<mime>;base64,<payload>)")

    header, payload = uri[len(_DATA_URI_PREFIX) :].split(_BASE64_MARKER, 1)
    if not header:
        raise ValueError("Data URI is missing its mime type")
    return header, payload


def _b64decode(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


class Artifact(BaseModel):
    """One generated image: encoded bytes plus mime type.

    Immutable once produced.

    Example:
        >>> art = Artifact(data=b"\\x89PNG...", mime_type="image/png")
        >>> art.uri.startswith("data:image/png;base64,")
        True
        >>> Artifact.from_data_uri(art.uri) == art
        True
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False, description="Encoded image bytes")
    mime_type: str = Field(default="image/png", description="Image mime type")

    @property
    def uri(self) -> str:
        """Data URI for direct display."""
        return self.to_data_uri()

    @property
    def extension(self) -> str:
        """File extension derived from mime type (``png``, ``jpeg``, ...)."""
        subtype = self.mime_type.split("/", 1)[-1]
        return subtype.split("+", 1)[0] or "bin"

    def to_data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"{_DATA_URI_PREFIX}{self.mime_type}{_BASE64_MARKER}{payload}"

    @classmethod
    def from_data_uri(cls, uri: str) -> Artifact:
        """Decode a data URI produced by :meth:`to_data_uri`.

        Raises:
            ValueError: If the URI is malformed
        """
        mime_type, payload = _split_data_uri(uri)
        return cls(data=_b64decode(payload), mime_type=mime_type)

    @classmethod
    def from_base64(cls, payload: str, mime_type: str = "image/png") -> Artifact:
        """Build from a bare base64 payload (as returned by most image APIs)."""
        return cls(data=_b64decode(payload), mime_type=mime_type)


class SourceImage(BaseModel):
    """Caller-provided image (photo, product shot, style reference)."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    mime_type: str

    @classmethod
    def from_base64(cls, payload: str, mime_type: str) -> SourceImage:
        """Build from the ``{base64, mimeType}`` pair produced by file readers."""
        return cls(data=_b64decode(payload), mime_type=mime_type)

    @classmethod
    def from_data_uri(cls, uri: str) -> SourceImage:
        mime_type, payload = _split_data_uri(uri)
        return cls(data=_b64decode(payload), mime_type=mime_type)

    @property
    def filename(self) -> str:
        """Synthetic upload filename (some APIs require one)."""
        subtype = self.mime_type.split("/", 1)[-1].split("+", 1)[0]
        return f"source.{subtype or 'png'}"


class ImageConfig(BaseModel):
    """Per-call image output configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_format: str = Field(default="image/png", description="Output mime type")
    aspect_ratio: str = Field(
        default="1:1", pattern=r"^\d+:\d+$", description="Aspect ratio, e.g. '1:1', '16:9'"
    )
