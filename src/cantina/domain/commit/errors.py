"""Failures raised by the commit coordinator, the batch executor and store adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .batch import BatchOutcome
    from .mutations import Mutation


class CommitError(Exception):
    """Base class for every failure of an atomic commit."""


class TooLargeError(CommitError):
    """Raised before any store call when a commit exceeds the mutation ceiling."""

    def __init__(self, size: int, ceiling: int) -> None:
        super().__init__(f"Commit of {size} mutations exceeds the ceiling of {ceiling}")
        self.size = size
        self.ceiling = ceiling


class InvalidCommitError(CommitError, ValueError):
    """Raised before any store call when a commit is structurally invalid."""


class ConditionFailedError(CommitError):
    """A predicate of the commit did not hold; nothing was applied."""

    default_message = "A commit condition failed"

    def __init__(self, message: str | None = None, *, mutation: Mutation | None = None) -> None:
        super().__init__(message or self.default_message)
        self.mutation = mutation


class TransientCommitError(CommitError):
    """The store was unavailable; the commit may be retried with fresh state."""


class PartialBatchFailureError(CommitError):
    """Some chunks of a batch were applied and some were not."""

    def __init__(self, outcome: BatchOutcome) -> None:
        failed = ", ".join(str(index) for index in outcome.failed_chunks)
        super().__init__(
            f"{len(outcome.failed_chunks)} of {outcome.total_chunks} chunks failed "
            f"(indices: {failed}); reconciliation required"
        )
        self.outcome = outcome
