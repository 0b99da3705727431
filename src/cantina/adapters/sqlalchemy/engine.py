"""Process-wide SQLAlchemy engine lifecycle for the record store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from cantina.config import get_database_config
from cantina.domain.ports.store import DEFAULT_STORE_TRANSACTION_LIMIT

from .migrations import upgrade_head
from .store import SqlAlchemyRecordStore

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before (or twice) initialising."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None

    def require_engine(self) -> Engine:
        if self.engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call cantina.adapters.sqlalchemy."
                "engine.startup() before requesting a record store."
            )
        return self.engine


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Create (or adopt) the engine and migrate the schema to head."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    upgrade_head(engine=resolved_engine)
    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    log.debug("SQLAlchemy adapter started on %s", resolved_engine.url.render_as_string())
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def get_record_store(
    *, max_transaction_items: int = DEFAULT_STORE_TRANSACTION_LIMIT
) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(
        _STATE.require_engine(), max_transaction_items=max_transaction_items
    )
