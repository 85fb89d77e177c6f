"""Cancellation support for in-flight generation calls.

A cancellation token is a plain ``asyncio.Event``. Setting it aborts every
remote call raced against it: the call task is cancelled, which closes the
underlying HTTP request, and ``GenerationCancelledError`` is raised to the
caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
import logging
from typing import TypeVar

from dreamloom.core.capability.errors import GenerationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_cancelled(cancel_token: asyncio.Event | None) -> bool:
    """Check if a token is set and signaled."""
    return cancel_token is not None and cancel_token.is_set()


def raise_if_cancelled(cancel_token: asyncio.Event | None, operation: str) -> None:
    """Raise GenerationCancelledError if the token has fired.

    Raises:
        GenerationCancelledError: If cancel_token is set
    """
    if is_cancelled(cancel_token):
        logger.warning(f"{operation} cancelled before issuing the next call")
        raise GenerationCancelledError("Generation was cancelled", operation=operation)


async def await_cancellable(
    awaitable: Awaitable[T],
    cancel_token: asyncio.Event | None,
    *,
    operation: str,
) -> T:
    """Await a remote call, aborting it if the token fires first.

    Args:
        awaitable: The remote call
        cancel_token: Optional cancellation token
        operation: Operation name for diagnostics

    Returns:
        The call's result

    Raises:
        GenerationCancelledError: If the token fired before the call finished
    """
    if cancel_token is None:
        return await awaitable

    call = asyncio.ensure_future(awaitable)
    if cancel_token.is_set():
        call.cancel()
        await asyncio.gather(call, return_exceptions=True)
        raise_if_cancelled(cancel_token, operation)

    waiter = asyncio.ensure_future(cancel_token.wait())
    try:
        await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # Outer task cancelled: take the in-flight call down with it
        call.cancel()
        raise
    finally:
        waiter.cancel()

    if call.done():
        return call.result()

    logger.warning(f"{operation} aborted while in flight")
    call.cancel()
    await asyncio.gather(call, return_exceptions=True)
    raise GenerationCancelledError("Generation was cancelled", operation=operation)


class RequestScope:
    """Hands out one cancellation token per request.

    Beginning a new request fires the previous request's token, so a
    superseded run stops its in-flight calls instead of finishing in the
    background.

    Example:
        >>> scope = RequestScope()
        >>> first = scope.begin()
        >>> second = scope.begin()
        >>> first.is_set(), second.is_set()
        (True, False)
    """

    def __init__(self) -> None:
        self._current: asyncio.Event | None = None

    @property
    def current(self) -> asyncio.Event | None:
        """Token of the active request (None before the first request)."""
        return self._current

    def begin(self) -> asyncio.Event:
        """Supersede the active request and return a fresh token."""
        if self._current is not None and not self._current.is_set():
            logger.debug("Superseding in-flight request")
            self._current.set()
        self._current = asyncio.Event()
        return self._current

    def cancel(self) -> None:
        """Cancel the active request, if any."""
        if self._current is not None:
            self._current.set()
