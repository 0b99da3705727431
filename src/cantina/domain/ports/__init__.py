"""Domain ports implemented by adapters."""

from __future__ import annotations

from .store import DEFAULT_STORE_TRANSACTION_LIMIT, AtomicCommitStore, RecordReader, RecordStore

__all__ = [
    "DEFAULT_STORE_TRANSACTION_LIMIT",
    "AtomicCommitStore",
    "RecordReader",
    "RecordStore",
]
