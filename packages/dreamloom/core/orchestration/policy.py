"""Failure policy shared by the fan-out executors."""

from __future__ import annotations

from enum import Enum


class FailurePolicy(str, Enum):
    """How a multi-call request reacts when part of it yields nothing.

    BEST_EFFORT: keep what earlier/other calls produced, fail only when
        nothing at all was produced.
    ALL_OR_NOTHING: any failed or empty call fails the whole request.
    """

    BEST_EFFORT = "best_effort"
    ALL_OR_NOTHING = "all_or_nothing"
