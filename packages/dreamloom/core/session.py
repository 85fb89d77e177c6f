"""Dreamloom session coordinator.

The session owns everything shared across requests:
- Application configuration
- The capability client (built once, or injected)
- The request scope that supersedes in-flight requests
- The task service routed through that client
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from dreamloom.core.capability.base import GenerationCapability
from dreamloom.core.capability.factory import create_capability
from dreamloom.core.config.models import AppConfig
from dreamloom.core.orchestration.cancellation import RequestScope
from dreamloom.core.services.generation import GenerationService

logger = logging.getLogger(__name__)


class DreamloomSession:
    """Session coordinator for generation requests.

    Example:
        >>> session = DreamloomSession(app_config="config.yaml")
        >>> token = session.begin_request()
        >>> artifacts = await session.service.generate_images(
        ...     "a lighthouse made of glass", 4, cancel_token=token
        ... )
    """

    def __init__(
        self,
        *,
        app_config: AppConfig | Path | str | None = None,
        capability: GenerationCapability | None = None,
    ):
        """Initialize session.

        Args:
            app_config: AppConfig instance, path, or None (uses default path)
            capability: Optional pre-built capability client; when omitted it
                is created lazily from app_config on first use

        Raises:
            FileNotFoundError: If an explicit config path doesn't exist
            ValidationError: If config is invalid
        """
        self.app_config: AppConfig = self._resolve_config(app_config)
        self.output_dir = Path(self.app_config.output_dir)
        self.request_scope = RequestScope()
        self._capability = capability

        logger.debug(
            f"Session initialized: provider={self.app_config.provider.value}, "
            f"output_dir={self.output_dir}"
        )

    @staticmethod
    def _resolve_config(value: Any) -> AppConfig:
        """Resolve config from value, path, or default.

        Raises:
            TypeError: If value is wrong type
        """
        if value is None:
            return AppConfig.load_or_default()
        elif isinstance(value, (Path, str)):
            return AppConfig.load_or_default(Path(value))
        elif isinstance(value, AppConfig):
            return value
        else:
            raise TypeError(f"Expected AppConfig, Path, str, or None; got {type(value).__name__}")

    @property
    def capability(self) -> GenerationCapability:
        """Capability client for this session.

        Lazy-loaded on first access.

        Raises:
            ValueError: If no API key is configured
        """
        if self._capability is None:
            self._capability = create_capability(self.app_config)
        return self._capability

    @property
    def service(self) -> GenerationService:
        """Task service bound to this session's capability client.

        Lazy-loaded on first access.
        """
        if not hasattr(self, "_service"):
            self._service = GenerationService(
                self.capability,
                image_config=self.app_config.generation.image_config(),
                max_images_per_call=self.app_config.max_images_per_call,
            )
        return self._service

    def begin_request(self) -> asyncio.Event:
        """Start a new request, cancelling the previous one if still running."""
        return self.request_scope.begin()

    def cancel(self) -> None:
        """Cancel the active request."""
        self.request_scope.cancel()
