from __future__ import annotations

import pytest

from cantina.config import (
    ConfigurationError,
    MissingConfigurationError,
    flag_from_env,
    int_from_env,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_int_from_env_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CANTINA_EXAMPLE", raising=False)
    assert int_from_env("CANTINA_EXAMPLE", 7) == 7

    monkeypatch.setenv("CANTINA_EXAMPLE", " ")
    assert int_from_env("CANTINA_EXAMPLE", 7) == 7


def test_int_from_env_parses_and_rejects(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CANTINA_EXAMPLE", " 12 ")
    assert int_from_env("CANTINA_EXAMPLE", 7) == 12

    monkeypatch.setenv("CANTINA_EXAMPLE", "twelve")
    with pytest.raises(ConfigurationError, match="CANTINA_EXAMPLE"):
        int_from_env("CANTINA_EXAMPLE", 7)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), (" Yes ", True), ("0", False), ("", False)],
)
def test_flag_from_env(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("CANTINA_EXAMPLE_FLAG", raw)

    assert flag_from_env("CANTINA_EXAMPLE_FLAG") is expected
