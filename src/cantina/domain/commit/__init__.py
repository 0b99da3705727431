"""Atomic multi-entity commit layer."""

from __future__ import annotations

from .batch import BatchExecutor, BatchOutcome, chunk_mutations
from .conditions import (
    AllOf,
    AnyOf,
    Comparison,
    Condition,
    IsNull,
    Operator,
    all_of,
    any_of,
    eq,
    ge,
    gt,
    is_null,
    le,
    lt,
    ne,
)
from .coordinator import DEFAULT_COMMIT_CEILING, DEFAULT_MAX_ATTEMPTS, CommitCoordinator
from .errors import (
    CommitError,
    ConditionFailedError,
    InvalidCommitError,
    PartialBatchFailureError,
    TooLargeError,
    TransientCommitError,
)
from .mutations import (
    Increment,
    Mutation,
    MutationKind,
    Record,
    SetAttribute,
    UpdateAction,
    versioned_update,
)

__all__ = [
    "DEFAULT_COMMIT_CEILING",
    "DEFAULT_MAX_ATTEMPTS",
    "AllOf",
    "AnyOf",
    "BatchExecutor",
    "BatchOutcome",
    "CommitCoordinator",
    "CommitError",
    "Comparison",
    "Condition",
    "ConditionFailedError",
    "Increment",
    "InvalidCommitError",
    "IsNull",
    "Mutation",
    "MutationKind",
    "Operator",
    "PartialBatchFailureError",
    "Record",
    "SetAttribute",
    "TooLargeError",
    "TransientCommitError",
    "UpdateAction",
    "all_of",
    "any_of",
    "chunk_mutations",
    "eq",
    "ge",
    "gt",
    "is_null",
    "le",
    "lt",
    "ne",
    "versioned_update",
]
