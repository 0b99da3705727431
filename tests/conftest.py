from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from cantina.adapters.memory import InMemoryRecordStore
from cantina.adapters.sqlalchemy.migrations import upgrade_head
from cantina.adapters.sqlalchemy.store import SqlAlchemyRecordStore
from cantina.app import PointOfSale

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cantina.domain.ports.store import RecordStore


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sqlalchemy_store(sqlite_engine: Engine) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(sqlite_engine)


@pytest.fixture(params=["memory", "sqlalchemy"])
def record_store(request: pytest.FixtureRequest) -> RecordStore:
    """Every store adapter, so shared behaviour is checked against both."""

    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def pos(record_store: RecordStore) -> PointOfSale:
    return PointOfSale(record_store)
