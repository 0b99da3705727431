from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from cantina.config import MissingConfigurationError, storage


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("CANTINA_DATA_DIR", str(custom))

    config = storage.get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()


def test_database_config_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.get_database_config().uri == "sqlite:///override.db"


def test_database_config_creates_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("CANTINA_DATA_DIR", str(tmp_path / "data-dir"))

    uri = storage.get_database_config().uri

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_required_database_uri_must_be_set(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CANTINA_REQUIRE_DATABASE_URI", "true")
    monkeypatch.delenv("DATABASE_URI", raising=False)

    with pytest.raises(MissingConfigurationError, match="DATABASE_URI"):
        storage.get_database_config()


def test_required_database_uri_is_used(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CANTINA_REQUIRE_DATABASE_URI", "1")
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://pos@db/cantina")

    assert storage.get_database_config().uri == "postgresql+psycopg://pos@db/cantina"
