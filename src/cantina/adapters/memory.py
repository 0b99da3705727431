"""Dict-backed record store for tests and single-process use."""

from __future__ import annotations

import threading
from collections import defaultdict
from copy import deepcopy
from typing import TYPE_CHECKING

from cantina.domain.commit.errors import ConditionFailedError, TooLargeError
from cantina.domain.commit.mutations import MutationKind
from cantina.domain.ports.store import DEFAULT_STORE_TRANSACTION_LIMIT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cantina.domain.commit.conditions import Condition
    from cantina.domain.commit.mutations import Mutation, Record


class InMemoryRecordStore:
    """Applies each transaction against a staged copy and publishes it under one lock.

    Records are deep-copied in and out so callers can never alias stored state.
    """

    def __init__(self, *, max_transaction_items: int = DEFAULT_STORE_TRANSACTION_LIMIT) -> None:
        self._max_transaction_items = max_transaction_items
        self._collections: defaultdict[str, dict[str, Record]] = defaultdict(dict)
        self._lock = threading.Lock()

    @property
    def max_transaction_items(self) -> int:
        return self._max_transaction_items

    def get(self, collection: str, key: str) -> Record | None:
        with self._lock:
            record = self._collections[collection].get(key)
            return deepcopy(record) if record is not None else None

    def scan(self, collection: str, *, condition: Condition | None = None) -> list[Record]:
        with self._lock:
            records = list(self._collections[collection].values())
            return [
                deepcopy(record)
                for record in records
                if condition is None or condition.evaluate(record)
            ]

    def transact(self, mutations: Sequence[Mutation]) -> None:
        if len(mutations) > self._max_transaction_items:
            raise TooLargeError(len(mutations), self._max_transaction_items)

        with self._lock:
            staged: dict[tuple[str, str], Record | None] = {}
            for mutation in mutations:
                current = self._collections[mutation.collection].get(mutation.key)
                staged[mutation.target] = _apply(mutation, current)
            for (collection, key), record in staged.items():
                if record is None:
                    self._collections[collection].pop(key, None)
                else:
                    self._collections[collection][key] = record

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()


def _apply(mutation: Mutation, current: Record | None) -> Record | None:
    """New state of one record after ``mutation``; ``None`` means deleted."""

    match mutation.kind:
        case MutationKind.CREATE:
            if current is not None:
                raise ConditionFailedError(
                    f"{mutation.collection}/{mutation.key} already exists", mutation=mutation
                )
            record = deepcopy(mutation.record) or {}
            record.setdefault("id", mutation.key)
            return record
        case MutationKind.CONDITIONAL_UPDATE:
            if current is None or (
                mutation.condition is not None and not mutation.condition.evaluate(current)
            ):
                raise ConditionFailedError(
                    f"Condition failed for {mutation}: {mutation.condition}", mutation=mutation
                )
            record = deepcopy(current)
            for action in mutation.update:
                action.apply(record)
            return record
        case MutationKind.DELETE:
            if mutation.condition is None:
                return None
            if current is None or not mutation.condition.evaluate(current):
                raise ConditionFailedError(
                    f"Condition failed for {mutation}: {mutation.condition}", mutation=mutation
                )
            return None
