"""Single bounded atomic commit against the record store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import InvalidCommitError, TooLargeError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cantina.domain.ports.store import AtomicCommitStore

    from .mutations import Mutation

# Kept below the store's own limit to leave headroom for its internal overhead.
DEFAULT_COMMIT_CEILING: Final[int] = 20

# Attempts a caller makes with regenerated mutations before giving up on a conflict.
DEFAULT_MAX_ATTEMPTS: Final[int] = 3

log = getLogger(__name__)


class CommitCoordinator:
    """Submit up to ``ceiling`` mutations to the store as one all-or-nothing operation.

    The coordinator only checks structure and size. It never inspects business
    semantics and never retries: whether a retry with regenerated mutations is
    appropriate is the caller's decision.
    """

    def __init__(self, store: AtomicCommitStore, *, ceiling: int = DEFAULT_COMMIT_CEILING) -> None:
        if ceiling < 1:
            raise ValueError("Commit ceiling must be at least 1")
        if ceiling > store.max_transaction_items:
            raise ValueError(
                f"Commit ceiling {ceiling} exceeds the store limit of "
                f"{store.max_transaction_items} items"
            )
        self.store = store
        self.ceiling = ceiling

    def commit(self, mutations: Sequence[Mutation]) -> None:
        """Apply every mutation or none of them.

        Raises ``TooLargeError`` or ``InvalidCommitError`` without contacting the
        store, ``ConditionFailedError`` when a predicate fails and
        ``TransientCommitError`` when the store is unavailable.
        """

        if not mutations:
            log.debug("Skipping empty commit")
            return
        if len(mutations) > self.ceiling:
            raise TooLargeError(len(mutations), self.ceiling)
        _ensure_distinct_targets(mutations)

        log.debug("Committing %d mutation(s)", len(mutations))
        self.store.transact(tuple(mutations))


def _ensure_distinct_targets(mutations: Sequence[Mutation]) -> None:
    seen: set[tuple[str, str]] = set()
    for mutation in mutations:
        if mutation.target in seen:
            collection, key = mutation.target
            raise InvalidCommitError(f"Commit targets {collection}/{key} more than once")
        seen.add(mutation.target)
