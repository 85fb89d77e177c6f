"""Parallel replica executor.

Single-artifact capabilities (edit, fusion, per-variant ads) yield exactly
one image per call, so N outputs means N independent concurrent calls
joined with an explicit fan-in.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import logging

from dreamloom.core.capability.base import GenerationCapability, check_source_images
from dreamloom.core.capability.errors import GenerationFailedError
from dreamloom.core.capability.models import Artifact, SourceImage
from dreamloom.core.orchestration.cancellation import await_cancellable, raise_if_cancelled
from dreamloom.core.orchestration.policy import FailurePolicy

logger = logging.getLogger(__name__)

_OPERATION = "replica_generate"

ReplicaCall = Callable[[], Awaitable[Artifact]]


def _first_failure(tasks: Sequence[asyncio.Task[Artifact]]) -> BaseException | None:
    """First failed task in launch order (ignoring cancelled siblings)."""
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception() is not None:
            return task.exception()
    return None


async def _cancel_all(tasks: Sequence[asyncio.Task[Artifact]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class ParallelReplicaExecutor:
    """Launches N concurrent single-artifact calls and joins them.

    Results keep launch order regardless of completion order.

    With the default ``ALL_OR_NOTHING`` policy the first failure fails the
    whole request and cancels the calls still in flight. ``BEST_EFFORT``
    waits for every call and returns the successful artifacts, failing only
    when all calls failed.

    Args:
        capability: Injected capability client
        policy: Failure policy
        max_concurrency: Optional cap on simultaneously running calls
    """

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        policy: FailurePolicy = FailurePolicy.ALL_OR_NOTHING,
        max_concurrency: int | None = None,
    ) -> None:
        self._capability = capability
        self._policy = policy
        self._max_concurrency = max_concurrency

    @property
    def policy(self) -> FailurePolicy:
        return self._policy

    async def compose(
        self,
        prompt: str,
        images: Sequence[SourceImage],
        quantity: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Run ``quantity`` concurrent edit/compose calls.

        Args:
            prompt: Edit or fusion instruction
            images: One or two source images
            quantity: Number of artifacts (<= 0 returns [] without calling)
            cancel_token: Optional cancellation token

        Returns:
            One artifact per call, in launch order

        Raises:
            GenerationEmptyError: If a call returned no image part
            ProviderError: If a call failed
            GenerationCancelledError: If cancel_token fires
        """
        if quantity <= 0:
            return []

        source_images = check_source_images(images)

        async def call() -> Artifact:
            return await self._capability.edit_or_compose_image(prompt, source_images)

        return await self.run(call, quantity, cancel_token=cancel_token)

    async def run(
        self,
        call: ReplicaCall,
        quantity: int,
        *,
        cancel_token: asyncio.Event | None = None,
    ) -> list[Artifact]:
        """Run ``quantity`` concurrent invocations of an arbitrary single-artifact call.

        Args:
            call: Zero-argument coroutine function producing one artifact
            quantity: Number of invocations (<= 0 returns [] without calling)
            cancel_token: Optional cancellation token

        Returns:
            Artifacts in launch order
        """
        if quantity <= 0:
            return []

        raise_if_cancelled(cancel_token, _OPERATION)

        logger.debug(f"Replica: launching {quantity} concurrent call(s) ({self._policy.value})")
        return await await_cancellable(
            self._fan_out_fan_in(call, quantity),
            cancel_token,
            operation=_OPERATION,
        )

    async def _fan_out_fan_in(self, call: ReplicaCall, quantity: int) -> list[Artifact]:
        if self._max_concurrency is not None and self._max_concurrency > 0:
            semaphore = asyncio.Semaphore(self._max_concurrency)

            async def limited() -> Artifact:
                async with semaphore:
                    return await call()

            tasks = [asyncio.create_task(limited()) for _ in range(quantity)]
        else:
            tasks = [asyncio.create_task(call()) for _ in range(quantity)]

        try:
            if self._policy is FailurePolicy.ALL_OR_NOTHING:
                return await self._join_all_or_nothing(tasks)
            return await self._join_best_effort(tasks)
        except asyncio.CancelledError:
            await _cancel_all(tasks)
            raise

    async def _join_all_or_nothing(self, tasks: list[asyncio.Task[Artifact]]) -> list[Artifact]:
        _done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

        error = _first_failure(tasks)
        if error is not None:
            logger.warning(
                f"Replica call failed; cancelling {len(pending)} in-flight call(s): {error}"
            )
            await _cancel_all(list(pending))
            raise error

        if any(task.cancelled() for task in tasks):
            logger.warning("Replica call was cancelled; failing the request")
            await _cancel_all(list(pending))
            raise GenerationFailedError("A replica call was cancelled.", operation=_OPERATION)

        return [task.result() for task in tasks]

    async def _join_best_effort(self, tasks: list[asyncio.Task[Artifact]]) -> list[Artifact]:
        await asyncio.wait(tasks, return_when=asyncio.ALL_COMPLETED)

        artifacts = [
            task.result() for task in tasks if not task.cancelled() and task.exception() is None
        ]
        failures = len(tasks) - len(artifacts)

        if not artifacts:
            error = _first_failure(tasks)
            if error is None:
                raise GenerationFailedError(
                    "Every replica call was cancelled.", operation=_OPERATION
                )
            raise error

        if failures:
            logger.warning(f"Replica: {failures}/{len(tasks)} call(s) failed, returning the rest")
        return artifacts
