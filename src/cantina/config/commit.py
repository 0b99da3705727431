"""Commit sizing and retry settings."""

from __future__ import annotations

from dataclasses import dataclass

from cantina.domain.commit.coordinator import DEFAULT_COMMIT_CEILING, DEFAULT_MAX_ATTEMPTS
from cantina.domain.ports.store import DEFAULT_STORE_TRANSACTION_LIMIT

from .env import int_from_env
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CommitConfig:
    """``ceiling`` stays strictly below the store's own per-transaction limit."""

    ceiling: int = DEFAULT_COMMIT_CEILING
    store_transaction_limit: int = DEFAULT_STORE_TRANSACTION_LIMIT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        for name in ("ceiling", "store_transaction_limit", "max_attempts"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")
        if self.ceiling >= self.store_transaction_limit:
            raise ConfigurationError(
                f"Commit ceiling ({self.ceiling}) must stay below the store "
                f"transaction limit ({self.store_transaction_limit})"
            )


def get_commit_config() -> CommitConfig:
    return CommitConfig(
        ceiling=int_from_env("CANTINA_COMMIT_CEILING", DEFAULT_COMMIT_CEILING),
        store_transaction_limit=int_from_env(
            "CANTINA_STORE_TRANSACTION_LIMIT", DEFAULT_STORE_TRANSACTION_LIMIT
        ),
        max_attempts=int_from_env("CANTINA_MAX_COMMIT_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
    )
