"""Task services used by the session and CLI."""

from dreamloom.core.services.generation import (
    ArtStyle,
    CommercialStyle,
    DreamRequest,
    DreamStyle,
    GenerationService,
    resolve_style,
)

__all__ = [
    "GenerationService",
    "DreamRequest",
    "DreamStyle",
    "ArtStyle",
    "CommercialStyle",
    "resolve_style",
]
