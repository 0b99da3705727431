from __future__ import annotations

import pytest

from cantina.domain.commit import (
    Increment,
    Mutation,
    MutationKind,
    SetAttribute,
    eq,
    versioned_update,
)


def test_create_requires_matching_id() -> None:
    with pytest.raises(ValueError, match="id"):
        Mutation.create("sales", "sale-1", {"id": "sale-2"})


def test_create_copies_the_record() -> None:
    record = {"id": "sale-1", "total": 100}
    mutation = Mutation.create("sales", "sale-1", record)
    record["total"] = 0

    assert mutation.record == {"id": "sale-1", "total": 100}


def test_conditional_update_always_carries_a_condition() -> None:
    with pytest.raises(ValueError, match="condition"):
        Mutation(MutationKind.CONDITIONAL_UPDATE, "sales", "sale-1", update=(SetAttribute("a", 1),))


def test_create_cannot_carry_a_condition() -> None:
    with pytest.raises(ValueError, match="condition"):
        Mutation(
            MutationKind.CREATE,
            "sales",
            "sale-1",
            record={"id": "sale-1"},
            condition=eq("version", 1),
        )


def test_each_attribute_updated_once() -> None:
    with pytest.raises(ValueError, match="at most once"):
        Mutation.conditional_update(
            "menu_items",
            "item-1",
            Increment("stock", -1),
            Increment("stock", -1),
            condition=eq("version", 1),
        )


def test_versioned_update_guards_and_bumps_version() -> None:
    mutation = versioned_update(
        "menu_items",
        "item-1",
        Increment("stock", -2),
        expected_version=3,
        condition=eq("event_id", "event-1"),
    )

    assert mutation.kind is MutationKind.CONDITIONAL_UPDATE
    assert mutation.condition is not None
    assert mutation.condition.evaluate({"version": 3, "event_id": "event-1"})
    assert not mutation.condition.evaluate({"version": 4, "event_id": "event-1"})

    record = {"version": 3, "stock": 5}
    for action in mutation.update:
        action.apply(record)
    assert record == {"version": 4, "stock": 3}


def test_increment_leaves_null_untouched() -> None:
    record: dict[str, object] = {"stock": None}

    Increment("stock", -1).apply(record)

    assert record["stock"] is None


def test_set_attribute_does_not_alias_value() -> None:
    value = {"nested": [1]}
    record: dict[str, object] = {}

    SetAttribute("details", value).apply(record)
    value["nested"].append(2)

    assert record["details"] == {"nested": [1]}
