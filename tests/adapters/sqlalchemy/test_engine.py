from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect

from cantina.adapters.sqlalchemy.engine import (
    StartupError,
    configured_engine,
    get_record_store,
    is_started,
    shutdown,
    startup,
)
from cantina.adapters.sqlalchemy.migrations import current_revision
from cantina.config import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def reset_adapter_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_record_store_requires_startup() -> None:
    with pytest.raises(StartupError):
        get_record_store()


def test_startup_refuses_local_fallback_when_uri_required(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CANTINA_REQUIRE_DATABASE_URI", "yes")
    monkeypatch.delenv("DATABASE_URI", raising=False)

    with pytest.raises(MissingConfigurationError):
        startup()

    assert not is_started()


def test_startup_migrates_schema() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine)

    assert is_started()
    tables = set(inspect(engine).get_table_names())
    assert {"menu_items", "customers", "sales", "customer_transactions", "audit_log"} <= tables
    assert current_revision(engine) == "202610010001"
    assert get_record_store().engine is engine


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_is_idempotent_for_schema() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine)
    startup(engine=engine, force=True)

    assert current_revision(engine) == "202610010001"
