"""Generation orchestration: batch fan-out, parallel replicas, narrative pipeline."""

from dreamloom.core.orchestration.batch import BatchFanOutExecutor, plan_chunks
from dreamloom.core.orchestration.cancellation import (
    RequestScope,
    await_cancellable,
    is_cancelled,
    raise_if_cancelled,
)
from dreamloom.core.orchestration.narrative import (
    NarrativePipeline,
    NarrativeState,
    ProgressCallback,
    ProgressSnapshot,
    ScriptPlan,
    parse_script_plan,
)
from dreamloom.core.orchestration.policy import FailurePolicy
from dreamloom.core.orchestration.replica import ParallelReplicaExecutor, ReplicaCall

__all__ = [
    "BatchFanOutExecutor",
    "ParallelReplicaExecutor",
    "NarrativePipeline",
    "FailurePolicy",
    "plan_chunks",
    "parse_script_plan",
    "ScriptPlan",
    "NarrativeState",
    "ProgressSnapshot",
    "ProgressCallback",
    "ReplicaCall",
    "RequestScope",
    "await_cancellable",
    "is_cancelled",
    "raise_if_cancelled",
]
