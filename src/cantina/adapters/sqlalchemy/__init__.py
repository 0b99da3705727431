"""SQLAlchemy adapter package for Cantina."""

from __future__ import annotations

from .engine import (
    StartupError,
    configured_engine,
    get_record_store,
    is_started,
    shutdown,
    startup,
)
from .store import SqlAlchemyRecordStore, compile_condition
from .tables import TABLES_BY_COLLECTION, metadata

__all__ = [
    "TABLES_BY_COLLECTION",
    "SqlAlchemyRecordStore",
    "StartupError",
    "compile_condition",
    "configured_engine",
    "get_record_store",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
