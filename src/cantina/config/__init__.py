"""Application configuration helpers."""

from __future__ import annotations

from .commit import CommitConfig, get_commit_config
from .env import flag_from_env, int_from_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CommitConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "flag_from_env",
    "get_commit_config",
    "get_database_config",
    "get_storage_config",
    "int_from_env",
    "require_env_vars",
]
