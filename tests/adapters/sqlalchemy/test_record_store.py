from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import IntegrityError, OperationalError

from cantina.adapters.sqlalchemy.store import SqlAlchemyRecordStore, compile_condition
from cantina.adapters.sqlalchemy.tables import menu_items_table
from cantina.domain.commit import (
    ConditionFailedError,
    InvalidCommitError,
    Mutation,
    SetAttribute,
    TransientCommitError,
    all_of,
    any_of,
    eq,
    ge,
    is_null,
    versioned_update,
)
from cantina.domain.model import Collection
from tests.helpers.pos import make_menu_item, seed

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from sqlalchemy.engine import Connection


class _UnavailableEngine:
    def __init__(self, error: Exception) -> None:
        self.error = error

    def begin(self) -> AbstractContextManager[Connection]:
        raise self.error

    def connect(self) -> AbstractContextManager[Connection]:
        raise self.error


def test_conditions_compile_to_where_clause() -> None:
    condition = all_of(eq("version", 2), any_of(is_null("stock"), ge("stock", 3)))
    assert condition is not None

    clause = compile_condition(menu_items_table, condition)
    sql = str(clause.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))

    assert sql == "menu_items.version = 2 AND (menu_items.stock IS NULL OR menu_items.stock >= 3)"


def test_unknown_attribute_is_rejected() -> None:
    with pytest.raises(InvalidCommitError, match="colour"):
        compile_condition(menu_items_table, eq("colour", "red"))


def test_unknown_collection_is_rejected(sqlalchemy_store: SqlAlchemyRecordStore) -> None:
    with pytest.raises(InvalidCommitError):
        sqlalchemy_store.get("tables", "x")


def test_unknown_update_attribute_rolls_back(sqlalchemy_store: SqlAlchemyRecordStore) -> None:
    item = make_menu_item()
    seed(sqlalchemy_store, item)

    with pytest.raises(InvalidCommitError):
        sqlalchemy_store.transact(
            [
                versioned_update(
                    Collection.MENU_ITEMS,
                    item.id,
                    SetAttribute("colour", "red"),
                    expected_version=item.version,
                )
            ]
        )


def test_operational_errors_are_transient() -> None:
    error = OperationalError("BEGIN", {}, Exception("database is locked"))
    store = SqlAlchemyRecordStore(_UnavailableEngine(error))  # type: ignore[arg-type]

    with pytest.raises(TransientCommitError):
        store.transact([])
    with pytest.raises(TransientCommitError):
        store.get(Collection.SALES, "sale-1")


def test_other_database_errors_propagate() -> None:
    error = IntegrityError("BEGIN", {}, Exception("constraint"))
    store = SqlAlchemyRecordStore(_UnavailableEngine(error))  # type: ignore[arg-type]

    with pytest.raises(IntegrityError):
        store.scan(Collection.SALES)


def test_create_missing_required_attribute_is_invalid(
    sqlalchemy_store: SqlAlchemyRecordStore,
) -> None:
    first = make_menu_item()
    record = make_menu_item().to_record()
    del record["price"]

    with pytest.raises(InvalidCommitError, match="price"):
        sqlalchemy_store.transact(
            [
                Mutation.create(Collection.MENU_ITEMS, first.id, first.to_record()),
                Mutation.create(Collection.MENU_ITEMS, record["id"], record),
            ]
        )

    assert sqlalchemy_store.get(Collection.MENU_ITEMS, first.id) is None


def test_create_relies_on_column_defaults(sqlalchemy_store: SqlAlchemyRecordStore) -> None:
    record = make_menu_item().to_record()
    del record["sold_count"]

    sqlalchemy_store.transact([Mutation.create(Collection.MENU_ITEMS, record["id"], record)])

    assert sqlalchemy_store.get(Collection.MENU_ITEMS, record["id"])["sold_count"] == 0


def test_create_of_existing_key_is_a_condition_failure(
    sqlalchemy_store: SqlAlchemyRecordStore,
) -> None:
    item = make_menu_item()
    seed(sqlalchemy_store, item)

    with pytest.raises(ConditionFailedError, match="already exists"):
        seed(sqlalchemy_store, item)
