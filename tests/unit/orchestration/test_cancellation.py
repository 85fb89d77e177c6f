"""Tests for cancellation tokens and request scopes."""

from __future__ import annotations

import asyncio

import pytest

from dreamloom.core.capability.errors import GenerationCancelledError
from dreamloom.core.orchestration.cancellation import (
    RequestScope,
    await_cancellable,
    is_cancelled,
    raise_if_cancelled,
)


class TestTokens:
    def test_is_cancelled(self) -> None:
        token = asyncio.Event()
        assert is_cancelled(None) is False
        assert is_cancelled(token) is False
        token.set()
        assert is_cancelled(token) is True

    def test_raise_if_cancelled(self) -> None:
        token = asyncio.Event()
        raise_if_cancelled(token, "op")
        token.set()
        with pytest.raises(GenerationCancelledError) as exc_info:
            raise_if_cancelled(token, "op")
        assert exc_info.value.operation == "op"


class TestAwaitCancellable:
    @pytest.mark.asyncio
    async def test_without_token(self) -> None:
        async def call() -> int:
            return 7

        assert await await_cancellable(call(), None, operation="op") == 7

    @pytest.mark.asyncio
    async def test_completes_before_cancel(self) -> None:
        async def call() -> str:
            await asyncio.sleep(0)
            return "done"

        assert await await_cancellable(call(), asyncio.Event(), operation="op") == "done"

    @pytest.mark.asyncio
    async def test_propagates_call_errors(self) -> None:
        async def call() -> None:
            raise RuntimeError("remote blew up")

        with pytest.raises(RuntimeError, match="remote blew up"):
            await await_cancellable(call(), asyncio.Event(), operation="op")

    @pytest.mark.asyncio
    async def test_already_cancelled_never_runs_call(self) -> None:
        ran = False

        async def call() -> None:
            nonlocal ran
            ran = True

        token = asyncio.Event()
        token.set()

        with pytest.raises(GenerationCancelledError):
            await await_cancellable(call(), token, operation="op")

        assert ran is False

    @pytest.mark.asyncio
    async def test_cancel_while_in_flight(self) -> None:
        call_cancelled = asyncio.Event()

        async def call() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                call_cancelled.set()
                raise

        token = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, token.set)

        with pytest.raises(GenerationCancelledError):
            await await_cancellable(call(), token, operation="op")

        assert call_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_outer_cancellation_reaches_call(self) -> None:
        started = asyncio.Event()
        call_cancelled = asyncio.Event()

        async def call() -> None:
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                call_cancelled.set()
                raise

        outer = asyncio.create_task(await_cancellable(call(), asyncio.Event(), operation="op"))
        await started.wait()
        outer.cancel()

        with pytest.raises(asyncio.CancelledError):
            await outer
        await asyncio.sleep(0)

        assert call_cancelled.is_set()


class TestRequestScope:
    def test_initially_empty(self) -> None:
        assert RequestScope().current is None

    def test_begin_supersedes_previous(self) -> None:
        scope = RequestScope()
        first = scope.begin()
        second = scope.begin()

        assert first.is_set()
        assert not second.is_set()
        assert scope.current is second

    def test_cancel(self) -> None:
        scope = RequestScope()
        scope.cancel()

        token = scope.begin()
        scope.cancel()

        assert token.is_set()
