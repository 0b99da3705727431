from __future__ import annotations

import os
import subprocess
import sys

import pytest

from cantina.config import CommitConfig, ConfigurationError, get_commit_config


def test_defaults_leave_headroom_below_store_limit() -> None:
    config = CommitConfig()

    assert (config.ceiling, config.store_transaction_limit, config.max_attempts) == (20, 25, 3)


@pytest.mark.parametrize(
    "overrides",
    [
        {"ceiling": 0},
        {"max_attempts": 0},
        {"ceiling": 25, "store_transaction_limit": 25},
        {"ceiling": 30},
    ],
)
def test_invalid_settings_are_rejected(overrides: dict[str, int]) -> None:
    with pytest.raises(ConfigurationError):
        CommitConfig(**overrides)


def test_get_commit_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CANTINA_COMMIT_CEILING", "10")
    monkeypatch.setenv("CANTINA_STORE_TRANSACTION_LIMIT", "100")
    monkeypatch.setenv("CANTINA_MAX_COMMIT_ATTEMPTS", "5")

    assert get_commit_config() == CommitConfig(
        ceiling=10, store_transaction_limit=100, max_attempts=5
    )


def test_get_commit_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CANTINA_COMMIT_CEILING",
        "CANTINA_STORE_TRANSACTION_LIMIT",
        "CANTINA_MAX_COMMIT_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)

    assert get_commit_config() == CommitConfig()


def test_loading_config_does_not_import_workflows() -> None:
    script = (
        "import sys\n"
        "import cantina.config\n"
        "assert 'cantina.domain.workflows' not in sys.modules, sorted(sys.modules)\n"
    )
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(path for path in sys.path if path)}

    result = subprocess.run(  # noqa: S603
        [sys.executable, "-c", script], env=env, capture_output=True, text=True, check=False
    )

    assert result.returncode == 0, result.stderr
