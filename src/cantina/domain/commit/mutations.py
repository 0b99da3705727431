"""Mutations: single proposed changes to one record, identified by collection and key."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .conditions import AllOf, eq

if TYPE_CHECKING:
    from .conditions import Condition

type Record = dict[str, Any]

VERSION_ATTRIBUTE = "version"


class MutationKind(StrEnum):
    CREATE = "create"
    CONDITIONAL_UPDATE = "conditional_update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class SetAttribute:
    attribute: str
    value: object

    def apply(self, record: Record) -> None:
        record[self.attribute] = deepcopy(self.value)


@dataclass(frozen=True, slots=True)
class Increment:
    """Add ``amount`` to a numeric attribute; a null attribute stays null."""

    attribute: str
    amount: int

    def apply(self, record: Record) -> None:
        current = record.get(self.attribute)
        if current is None:
            return
        record[self.attribute] = current + self.amount


type UpdateAction = SetAttribute | Increment


@dataclass(frozen=True, slots=True)
class Mutation:
    """One create, conditional update or delete against ``collection``/``key``.

    A create is implicitly conditioned on the key being absent, so it never
    carries an explicit condition. A conditional update always does.
    """

    kind: MutationKind
    collection: str
    key: str
    record: Record | None = None
    update: tuple[UpdateAction, ...] = ()
    condition: Condition | None = None

    def __post_init__(self) -> None:
        is_create = self.kind is MutationKind.CREATE
        is_update = self.kind is MutationKind.CONDITIONAL_UPDATE
        if (self.record is not None) != is_create:
            raise ValueError("record must be present exactly for create mutations")
        if bool(self.update) != is_update:
            raise ValueError("update actions must be present exactly for conditional updates")
        if is_update and self.condition is None:
            raise ValueError("conditional updates require a condition")
        if is_create and self.condition is not None:
            raise ValueError("create mutations cannot carry an explicit condition")
        if self.record is not None and self.record.get("id", self.key) != self.key:
            raise ValueError("record id does not match the mutation key")
        attributes = [action.attribute for action in self.update]
        if len(attributes) != len(set(attributes)):
            raise ValueError("each attribute may be updated at most once per mutation")

    @property
    def target(self) -> tuple[str, str]:
        return (self.collection, self.key)

    @classmethod
    def create(cls, collection: str, key: str, record: Record) -> Mutation:
        return cls(MutationKind.CREATE, collection, key, record=dict(record))

    @classmethod
    def conditional_update(
        cls,
        collection: str,
        key: str,
        *actions: UpdateAction,
        condition: Condition,
    ) -> Mutation:
        return cls(
            MutationKind.CONDITIONAL_UPDATE,
            collection,
            key,
            update=tuple(actions),
            condition=condition,
        )

    @classmethod
    def delete(cls, collection: str, key: str, *, condition: Condition | None = None) -> Mutation:
        return cls(MutationKind.DELETE, collection, key, condition=condition)

    def __str__(self) -> str:
        return f"{self.kind} {self.collection}/{self.key}"


def versioned_update(
    collection: str,
    key: str,
    *actions: UpdateAction,
    expected_version: int,
    condition: Condition | None = None,
) -> Mutation:
    """Conditional update guarded by the version stamp, bumping it by one."""

    version_guard = eq(VERSION_ATTRIBUTE, expected_version)
    guard: Condition = version_guard if condition is None else AllOf((version_guard, condition))
    return Mutation.conditional_update(
        collection,
        key,
        *actions,
        Increment(VERSION_ATTRIBUTE, 1),
        condition=guard,
    )
