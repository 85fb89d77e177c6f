from __future__ import annotations

from pydantic import BaseModel, Field


class GenerationErrorData(BaseModel):
    """Structured data for generation errors.

    Args:
        message: Human-readable error description
        operation: Capability or executor operation that failed
        provider: Provider identifier (if the failure came from a remote call)
        detail: Extra diagnostic text (e.g. truncated raw response)
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    operation: str
    provider: str | None = None
    detail: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class GenerationError(Exception):
    """Base exception for all generation failures.

    Every failure is scoped to a single user request; the UI renders
    ``str(error)`` (or ``error.message``) as its one error line.

    Attributes:
        data: Structured error data (GenerationErrorData)
        message: Human-readable error description
        operation: Operation that failed
        provider: Provider identifier (if available)
        detail: Extra diagnostic text (if available)
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str = "generate",
        provider: str | None = None,
        detail: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.data = GenerationErrorData(
            message=message,
            operation=operation,
            provider=provider,
            detail=detail,
            cause=cause,
        )
        self.message = self.data.message
        self.operation = self.data.operation
        self.provider = self.data.provider
        self.detail = self.data.detail
        self.cause = self.data.cause

        super().__init__(str(self))

    def __str__(self) -> str:
        """Format error for logging and display."""
        return self.message


class ProviderError(GenerationError):
    """Transport or remote failure from a single capability call."""

    def __str__(self) -> str:
        parts = [self.message, f"operation={self.operation}"]
        if self.provider:
            parts.append(f"provider={self.provider}")
        return " | ".join(parts)


class GenerationEmptyError(GenerationError):
    """A call nominally succeeded but returned no usable artifact."""


class GenerationFailedError(GenerationError):
    """A batch request produced zero artifacts in total."""


class MalformedPlanError(GenerationError):
    """Structured text response did not parse into the expected plan shape."""


class GenerationCancelledError(GenerationError):
    """The request was cancelled (or superseded) while in flight."""
