"""Ports for the keyed record store backing the point of sale."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cantina.domain.commit.conditions import Condition
    from cantina.domain.commit.mutations import Mutation, Record

# Hard limit of items in one atomic store operation.
DEFAULT_STORE_TRANSACTION_LIMIT: Final[int] = 25


@runtime_checkable
class AtomicCommitStore(Protocol):
    """Applies a bounded list of mutations all-or-nothing.

    Implementations raise ``ConditionFailedError`` when any predicate fails,
    ``TooLargeError`` above ``max_transaction_items`` and
    ``TransientCommitError`` when the backend is unavailable.
    """

    @property
    def max_transaction_items(self) -> int: ...

    def transact(self, mutations: Sequence[Mutation]) -> None: ...


@runtime_checkable
class RecordReader(Protocol):
    """Read access used by workflows and maintenance tooling."""

    def get(self, collection: str, key: str) -> Record | None: ...

    def scan(self, collection: str, *, condition: Condition | None = None) -> list[Record]: ...


@runtime_checkable
class RecordStore(AtomicCommitStore, RecordReader, Protocol):
    """Full store contract: reads plus bounded atomic commits."""
