from __future__ import annotations

import pytest

from cantina.domain.commit import BatchOutcome, PartialBatchFailureError
from cantina.ui import cli


def _capture(monkeypatch: pytest.MonkeyPatch, name: str) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli, name, fake)
    return captured


def test_init_db_passes_database_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "initialise_database")

    cli.main(["init-db", "--database-uri", "sqlite:///pos.db"])

    assert captured == {"database_uri": "sqlite:///pos.db"}


def test_maintenance_commands_default_to_dry_run(monkeypatch: pytest.MonkeyPatch) -> None:
    backfill = _capture(monkeypatch, "run_sale_year_month_backfill")
    reconcile = _capture(monkeypatch, "run_balance_reconciliation")

    cli.main(["backfill-year-month"])
    cli.main(["reconcile-balances", "--apply"])

    assert backfill == {"apply": False}
    assert reconcile == {"apply": True}


def test_missing_command_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2


def test_failed_job_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(**_: object) -> None:
        raise PartialBatchFailureError(BatchOutcome(total_chunks=2, failed_chunks=(1,)))

    monkeypatch.setattr(cli, "run_balance_reconciliation", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["reconcile-balances", "--apply"])

    assert excinfo.value.code == 1
