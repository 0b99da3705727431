"""Chunked, explicitly non-atomic execution of large mutation lists.

Only for bulk and maintenance work that tolerates partial, resumable
application. Business transactions go through ``CommitCoordinator.commit``.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import CommitError, PartialBatchFailureError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .coordinator import CommitCoordinator
    from .mutations import Mutation

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """Chunk-level result of one ``commit_batches`` call. Never persisted."""

    total_chunks: int
    succeeded_chunks: tuple[int, ...] = ()
    failed_chunks: tuple[int, ...] = ()
    last_error: CommitError | None = None

    @property
    def is_complete(self) -> bool:
        """True only when every chunk was applied."""

        return not self.failed_chunks

    def raise_for_failures(self) -> None:
        if self.failed_chunks:
            raise PartialBatchFailureError(self)


def chunk_mutations(mutations: Sequence[Mutation], size: int) -> list[tuple[Mutation, ...]]:
    """Split into consecutive chunks of at most ``size`` items, preserving order."""

    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [tuple(mutations[start : start + size]) for start in range(0, len(mutations), size)]


class BatchExecutor:
    """Commit chunk after chunk, continuing past failures and never rolling back."""

    def __init__(self, coordinator: CommitCoordinator) -> None:
        self.coordinator = coordinator

    @property
    def chunk_size(self) -> int:
        return self.coordinator.ceiling

    def commit_batches(self, mutations: Sequence[Mutation]) -> BatchOutcome:
        chunks = chunk_mutations(mutations, self.chunk_size)
        succeeded: list[int] = []
        failed: list[int] = []
        last_error: CommitError | None = None

        for index, chunk in enumerate(chunks):
            try:
                self.coordinator.commit(chunk)
            except CommitError as exc:
                log.warning(
                    "Batch chunk %d/%d (%d mutations) failed: %s",
                    index + 1,
                    len(chunks),
                    len(chunk),
                    exc,
                )
                failed.append(index)
                last_error = exc
                continue
            succeeded.append(index)

        outcome = BatchOutcome(
            total_chunks=len(chunks),
            succeeded_chunks=tuple(succeeded),
            failed_chunks=tuple(failed),
            last_error=last_error,
        )
        log.info(
            "Batch finished: %d mutations, %d chunks, %d failed",
            len(mutations),
            outcome.total_chunks,
            len(outcome.failed_chunks),
        )
        return outcome
