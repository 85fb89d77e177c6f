"""Sequential multi-stage pipeline for paged narratives (manga mode).

State machine: PLANNING -> RENDERING(1..K) -> DONE, with FAILED reachable
from any state. One structured planning call is followed by one image call
per planned page, strictly in page order; no two remote calls are ever in
flight at once within a run. After each page the caller receives a
progress snapshot holding every artifact produced so far.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
import inspect
import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dreamloom.core.capability.base import GenerationCapability
from dreamloom.core.capability.errors import GenerationEmptyError, MalformedPlanError
from dreamloom.core.capability.models import Artifact, ImageConfig
from dreamloom.core.orchestration.cancellation import await_cancellable, raise_if_cancelled
from dreamloom.core.prompts import build_manga_page_prompt, build_script_prompt

logger = logging.getLogger(__name__)

_PLAN_OPERATION = "plan_script"
_RENDER_OPERATION = "render_page"

# Raw response text kept on MalformedPlanError for debugging
_RAW_SNIPPET_CHARS = 500


class ScriptPlan(BaseModel):
    """Ordered page descriptions produced by the planning stage.

    Also serves as the response schema requested from the text capability.
    """

    pages: list[str] = Field(description="One detailed description per page, in story order")


class NarrativeState(str, Enum):
    """Pipeline run state."""

    PLANNING = "planning"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class ProgressSnapshot(BaseModel):
    """Immutable view of a run's progress, handed to progress callbacks."""

    model_config = ConfigDict(frozen=True)

    state: NarrativeState
    status: str
    page: int = 0
    total_pages: int
    artifacts: tuple[Artifact, ...] = ()

    @property
    def uris(self) -> list[str]:
        """Data URIs of the artifacts produced so far."""
        return [artifact.uri for artifact in self.artifacts]


ProgressCallback = Callable[[ProgressSnapshot], Awaitable[None] | None]


@dataclass
class PipelineProgress:
    """Mutable, append-only progress of one pipeline run.

    Owned by the run that creates it; callers only ever see snapshots.
    """

    total_pages: int
    state: NarrativeState = NarrativeState.PLANNING
    status: str = "planning"
    page: int = 0
    artifacts: list[Artifact] = field(default_factory=list)

    def record_page(self, page: int, artifact: Artifact) -> None:
        self.page = page
        self.artifacts.append(artifact)
        self.status = f"page {page} of {self.total_pages}"

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            state=self.state,
            status=self.status,
            page=self.page,
            total_pages=self.total_pages,
            artifacts=tuple(self.artifacts),
        )


def parse_script_plan(raw: str, expected_pages: int) -> ScriptPlan:
    """Validate a raw planning response as an untrusted value.

    Args:
        raw: Raw text from the text capability
        expected_pages: Exact number of pages K the plan must contain

    Returns:
        Validated ScriptPlan with exactly ``expected_pages`` entries

    Raises:
        MalformedPlanError: On unparseable JSON, a missing/non-list/empty
            ``pages`` field, non-string entries, or a length other than K
    """

    snippet = repr(raw[:_RAW_SNIPPET_CHARS]) if isinstance(raw, str) else repr(raw)

    def malformed(reason: str, cause: BaseException | None = None) -> MalformedPlanError:
        logger.error(f"Failed to parse script plan ({reason}): {snippet}")
        return MalformedPlanError(
            "Failed to generate a valid script. The response was not in the correct format.",
            operation=_PLAN_OPERATION,
            detail=f"{reason}; raw={snippet}",
            cause=cause,
        )

    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise malformed("response is not valid JSON", e) from e

    if not isinstance(data, dict):
        raise malformed(f"expected a JSON object, got {type(data).__name__}")

    pages = data.get("pages")
    if pages is None:
        raise malformed("missing 'pages' field")
    if not isinstance(pages, list):
        raise malformed(f"'pages' must be a list, got {type(pages).__name__}")
    if not pages:
        raise malformed("'pages' is empty")
    if not all(isinstance(page, str) and page.strip() for page in pages):
        raise malformed("every page must be a non-empty string")
    if len(pages) != expected_pages:
        raise malformed(f"expected exactly {expected_pages} pages, got {len(pages)}")

    return ScriptPlan(pages=[page.strip() for page in pages])


async def _emit(on_progress: ProgressCallback | None, snapshot: ProgressSnapshot) -> None:
    if on_progress is None:
        return
    result = on_progress(snapshot)
    if inspect.isawaitable(result):
        await result


class NarrativePipeline:
    """Plans a K-page story, then renders it page by page.

    Args:
        capability: Injected capability client
        image_config: Output configuration for page renders
        script_prompt: Builds the planning prompt from (theme, pages)
        page_prompt: Builds a page render prompt from one page description

    Example:
        >>> pipeline = NarrativePipeline(client)
        >>> pages = await pipeline.run(
        ...     "a robot learns to paint", 4,
        ...     on_progress=lambda snap: print(snap.status),
        ... )
    """

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        image_config: ImageConfig | None = None,
        script_prompt: Callable[[str, int], str] = build_script_prompt,
        page_prompt: Callable[[str], str] = build_manga_page_prompt,
    ) -> None:
        self._capability = capability
        self._image_config = image_config or ImageConfig()
        self._script_prompt = script_prompt
        self._page_prompt = page_prompt

    async def plan(
        self,
        theme: str,
        pages: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> ScriptPlan:
        """Request and validate a plan with exactly ``pages`` parts.

        Raises:
            ValueError: If pages < 1
            MalformedPlanError: If the response does not validate
            ProviderError: On remote failure
        """
        if pages < 1:
            raise ValueError(f"Page count must be at least 1, got {pages}")

        raise_if_cancelled(cancel_token, _PLAN_OPERATION)
        logger.debug(f"Planning {pages}-page script")

        raw = await await_cancellable(
            self._capability.generate_text(self._script_prompt(theme, pages), ScriptPlan),
            cancel_token,
            operation=_PLAN_OPERATION,
        )
        return parse_script_plan(raw, pages)

    async def render_page(
        self,
        page_description: str,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> Artifact:
        """Render one planned page as exactly one image.

        Raises:
            GenerationEmptyError: If the capability returned no image
            ProviderError: On remote failure
        """
        artifacts = await await_cancellable(
            self._capability.generate_images(
                self._page_prompt(page_description), 1, self._image_config
            ),
            cancel_token,
            operation=_RENDER_OPERATION,
        )
        if not artifacts:
            raise GenerationEmptyError(
                "Page rendering returned no image.",
                operation=_RENDER_OPERATION,
                provider=self._capability.provider_type.value,
            )
        return artifacts[0]

    async def run(
        self,
        theme: str,
        pages: int,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Run the full pipeline.

        Args:
            theme: Story theme
            pages: Exact page count K
            on_progress: Called (sync or async) with a snapshot after each page
            cancel_token: Optional cancellation token

        Returns:
            Exactly K artifacts in page order

        Raises:
            ValueError: If pages < 1
            MalformedPlanError: If planning produced an invalid plan
            GenerationEmptyError: If a page render returned no image
            ProviderError: On remote failure
            GenerationCancelledError: If cancel_token fires
        """
        if pages < 1:
            raise ValueError(f"Page count must be at least 1, got {pages}")

        progress = PipelineProgress(total_pages=pages)

        try:
            plan = await self.plan(theme, pages, cancel_token=cancel_token)

            progress.state = NarrativeState.RENDERING
            for page_number, description in enumerate(plan.pages, start=1):
                raise_if_cancelled(cancel_token, _RENDER_OPERATION)
                logger.debug(f"Rendering page {page_number} of {pages}")

                artifact = await self.render_page(description, cancel_token=cancel_token)
                progress.record_page(page_number, artifact)
                if page_number == pages:
                    progress.state = NarrativeState.DONE
                await _emit(on_progress, progress.snapshot())

        except Exception as e:
            failed_in = progress.state
            progress.state = NarrativeState.FAILED
            logger.error(
                f"Narrative pipeline failed while {failed_in.value} "
                f"after {len(progress.artifacts)}/{pages} page(s): {e}"
            )
            raise

        logger.debug(f"Narrative pipeline done: {pages} page(s)")
        return list(progress.artifacts)
