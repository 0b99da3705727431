"""Store-neutral predicates evaluated against a stored record.

Adapters either evaluate these directly (``evaluate``) or compile them into
their native query language. Comparisons follow SQL semantics: comparing a
missing (``None``) attribute is always false, use ``is_null`` to test for it.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


class Operator(StrEnum):
    EQ = "="
    NE = "<>"
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


_COMPARATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
}


@dataclass(frozen=True, slots=True)
class Comparison:
    attribute: str
    operator: Operator
    value: object

    def __post_init__(self) -> None:
        if self.value is None:
            raise ValueError("Comparisons against None are not allowed; use is_null()")

    def evaluate(self, record: Mapping[str, object]) -> bool:
        current = record.get(self.attribute)
        if current is None:
            return False
        return _COMPARATORS[self.operator](current, self.value)

    def __str__(self) -> str:
        return f"{self.attribute} {self.operator} {self.value!r}"


@dataclass(frozen=True, slots=True)
class IsNull:
    attribute: str

    def evaluate(self, record: Mapping[str, object]) -> bool:
        return record.get(self.attribute) is None

    def __str__(self) -> str:
        return f"{self.attribute} IS NULL"


@dataclass(frozen=True, slots=True)
class AllOf:
    conditions: tuple[Condition, ...]

    def evaluate(self, record: Mapping[str, object]) -> bool:
        return all(condition.evaluate(record) for condition in self.conditions)

    def __str__(self) -> str:
        return "(" + " AND ".join(str(condition) for condition in self.conditions) + ")"


@dataclass(frozen=True, slots=True)
class AnyOf:
    conditions: tuple[Condition, ...]

    def evaluate(self, record: Mapping[str, object]) -> bool:
        return any(condition.evaluate(record) for condition in self.conditions)

    def __str__(self) -> str:
        return "(" + " OR ".join(str(condition) for condition in self.conditions) + ")"


type Condition = Comparison | IsNull | AllOf | AnyOf


def eq(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.EQ, value)


def ne(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.NE, value)


def lt(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.LT, value)


def le(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.LE, value)


def gt(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.GT, value)


def ge(attribute: str, value: object) -> Comparison:
    return Comparison(attribute, Operator.GE, value)


def is_null(attribute: str) -> IsNull:
    return IsNull(attribute)


def all_of(*conditions: Condition | None) -> Condition | None:
    """Conjunction of the given conditions, skipping ``None`` placeholders."""

    present = tuple(condition for condition in conditions if condition is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return AllOf(present)


def any_of(*conditions: Condition) -> Condition:
    if not conditions:
        raise ValueError("any_of() requires at least one condition")
    if len(conditions) == 1:
        return conditions[0]
    return AnyOf(tuple(conditions))
