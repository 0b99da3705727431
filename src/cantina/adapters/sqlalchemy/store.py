"""Record store on SQLAlchemy Core: one database transaction per commit."""

from __future__ import annotations

import operator
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from cantina.domain.commit.conditions import AllOf, AnyOf, Comparison, IsNull, Operator
from cantina.domain.commit.errors import (
    ConditionFailedError,
    InvalidCommitError,
    TooLargeError,
    TransientCommitError,
)
from cantina.domain.commit.mutations import Increment, MutationKind, SetAttribute
from cantina.domain.ports.store import DEFAULT_STORE_TRANSACTION_LIMIT

from .tables import TABLES_BY_COLLECTION

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from sqlalchemy import Column, ColumnElement, Connection, Table
    from sqlalchemy.engine import Engine

    from cantina.domain.commit.conditions import Condition
    from cantina.domain.commit.mutations import Mutation, Record

log = getLogger(__name__)

_SQL_OPERATORS: dict[Operator, Callable[[Any, Any], ColumnElement[bool]]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
}


def table_for(collection: str) -> Table:
    try:
        return TABLES_BY_COLLECTION[collection]
    except KeyError:
        raise InvalidCommitError(f"Unknown collection {collection!r}") from None


def _column(table: Table, attribute: str) -> Column[Any]:
    if attribute not in table.c:
        raise InvalidCommitError(f"{table.name} has no attribute {attribute!r}")
    return table.c[attribute]


def _check_create(table: Table, record: Record) -> None:
    """Reject unknown attributes and missing required ones before the INSERT.

    The primary key is then the only constraint an INSERT can violate.
    """

    for attribute in record:
        _column(table, attribute)
    missing = [
        column.name
        for column in table.columns
        if not column.nullable
        and column.default is None
        and column.server_default is None
        and record.get(column.name) is None
    ]
    if missing:
        raise InvalidCommitError(f"{table.name} record lacks required {', '.join(missing)}")


def compile_condition(table: Table, condition: Condition) -> ColumnElement[bool]:
    """Translate a store-neutral condition into a WHERE clause on ``table``."""

    match condition:
        case Comparison(attribute=attribute, operator=op, value=value):
            return _SQL_OPERATORS[op](_column(table, attribute), value)
        case IsNull(attribute=attribute):
            return _column(table, attribute).is_(None)
        case AllOf(conditions=conditions):
            return and_(*(compile_condition(table, part) for part in conditions))
        case AnyOf(conditions=conditions):
            return or_(*(compile_condition(table, part) for part in conditions))


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except PoolTimeoutError as exc:
        raise TransientCommitError(f"Timed out waiting for a connection: {exc}") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated or isinstance(exc, (OperationalError, InterfaceError)):
            raise TransientCommitError(f"Store unavailable: {exc}") from exc
        raise


class SqlAlchemyRecordStore:
    """Each ``transact`` call runs inside ``engine.begin()``.

    An UPDATE or conditional DELETE that matches no row, or an INSERT that hits
    an existing key, aborts the whole transaction with ``ConditionFailedError``.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        max_transaction_items: int = DEFAULT_STORE_TRANSACTION_LIMIT,
    ) -> None:
        self.engine = engine
        self._max_transaction_items = max_transaction_items

    @property
    def max_transaction_items(self) -> int:
        return self._max_transaction_items

    def get(self, collection: str, key: str) -> Record | None:
        table = table_for(collection)
        with _translate_errors(), self.engine.connect() as connection:
            row = connection.execute(select(table).where(table.c.id == key)).mappings().first()
        return None if row is None else dict(row)

    def scan(self, collection: str, *, condition: Condition | None = None) -> list[Record]:
        table = table_for(collection)
        statement = select(table)
        if condition is not None:
            statement = statement.where(compile_condition(table, condition))
        with _translate_errors(), self.engine.connect() as connection:
            rows = connection.execute(statement).mappings().all()
        return [dict(row) for row in rows]

    def transact(self, mutations: Sequence[Mutation]) -> None:
        if len(mutations) > self._max_transaction_items:
            raise TooLargeError(len(mutations), self._max_transaction_items)

        with _translate_errors(), self.engine.begin() as connection:
            for mutation in mutations:
                _apply(connection, mutation)
        log.debug("Applied %d mutation(s)", len(mutations))


def _apply(connection: Connection, mutation: Mutation) -> None:
    table = table_for(mutation.collection)
    match mutation.kind:
        case MutationKind.CREATE:
            record = dict(mutation.record or {})
            record.setdefault("id", mutation.key)
            _check_create(table, record)
            try:
                connection.execute(insert(table).values(record))
            except IntegrityError as exc:
                raise ConditionFailedError(
                    f"{mutation.collection}/{mutation.key} already exists", mutation=mutation
                ) from exc
        case MutationKind.CONDITIONAL_UPDATE:
            values: dict[str, Any] = {}
            for action in mutation.update:
                column = _column(table, action.attribute)
                match action:
                    case SetAttribute(value=value):
                        values[action.attribute] = value
                    case Increment(amount=amount):
                        values[action.attribute] = column + amount
            statement = update(table).where(table.c.id == mutation.key).values(values)
            if mutation.condition is not None:
                statement = statement.where(compile_condition(table, mutation.condition))
            if connection.execute(statement).rowcount != 1:
                raise ConditionFailedError(
                    f"Condition failed for {mutation}: {mutation.condition}", mutation=mutation
                )
        case MutationKind.DELETE:
            statement = delete(table).where(table.c.id == mutation.key)
            if mutation.condition is None:
                connection.execute(statement)
                return
            statement = statement.where(compile_condition(table, mutation.condition))
            if connection.execute(statement).rowcount != 1:
                raise ConditionFailedError(
                    f"Condition failed for {mutation}: {mutation.condition}", mutation=mutation
                )
