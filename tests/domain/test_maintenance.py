from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cantina.app import PointOfSale
from cantina.config import CommitConfig
from cantina.domain.assemblers import AccountMovement
from cantina.domain.commit import (
    Mutation,
    PartialBatchFailureError,
    SetAttribute,
    TransientCommitError,
    eq,
)
from cantina.domain.model import Collection, Customer, year_month_of
from tests.helpers.pos import (
    CASHIER,
    FailingStore,
    RecordingStore,
    make_customer,
    make_menu_item,
    sale_request,
    seed,
)

if TYPE_CHECKING:
    from cantina.adapters.memory import InMemoryRecordStore
    from cantina.domain.ports.store import RecordStore


def _legacy_sales(store: RecordStore, count: int) -> list[str]:
    """Confirm ``count`` sales and strip their year-month like pre-migration records."""

    pos = PointOfSale(store)
    item = make_menu_item(stock=None)
    seed(store, item)
    sale_ids = []
    for _ in range(count):
        sale = pos.confirm_sale(sale_request([(item, 1)]))
        store.transact(
            [
                Mutation.conditional_update(
                    Collection.SALES,
                    sale.id,
                    SetAttribute("year_month", None),
                    condition=eq("version", sale.version),
                )
            ]
        )
        sale_ids.append(sale.id)
    return sale_ids


def test_backfill_dry_run_writes_nothing(record_store: RecordStore) -> None:
    sale_ids = _legacy_sales(record_store, 3)

    report = PointOfSale(record_store).backfill_sale_year_month()

    assert (report.scanned, report.planned) == (3, 3)
    assert not report.applied
    assert report.is_complete
    for sale_id in sale_ids:
        assert record_store.get(Collection.SALES, sale_id)["year_month"] is None


def test_backfill_fills_year_month_from_created_at(record_store: RecordStore) -> None:
    sale_ids = _legacy_sales(record_store, 3)
    pos = PointOfSale(record_store)

    report = pos.backfill_sale_year_month(apply=True)

    assert report.applied
    assert report.is_complete
    for sale_id in sale_ids:
        sale = pos.get_sale(sale_id)
        assert sale.year_month == year_month_of(sale.created_at)
    assert pos.backfill_sale_year_month(apply=True).planned == 0


def test_backfill_resumes_after_partial_failure(memory_store: InMemoryRecordStore) -> None:
    sale_ids = _legacy_sales(memory_store, 5)
    flaky = FailingStore(memory_store, TransientCommitError("throttled"), fail_on=(2,))
    config = CommitConfig(ceiling=2, store_transaction_limit=25)
    pos = PointOfSale(flaky, config=config)

    first = pos.backfill_sale_year_month(apply=True)

    assert first.outcome is not None
    assert first.outcome.total_chunks == 3
    assert first.outcome.failed_chunks == (1,)
    assert not first.is_complete
    with pytest.raises(PartialBatchFailureError):
        first.raise_for_failures()

    second = pos.backfill_sale_year_month(apply=True)

    assert second.planned == 2
    assert second.is_complete
    assert all(
        memory_store.get(Collection.SALES, sale_id)["year_month"] is not None
        for sale_id in sale_ids
    )


def test_reconciliation_reports_and_repairs_drift(record_store: RecordStore) -> None:
    pos = PointOfSale(record_store)
    healthy = pos.register_customer(name="Gil", created_by=CASHIER, opening_deposit=200)
    drifted = make_customer(balance=300)
    seed(record_store, drifted)

    dry_run = pos.reconcile_customer_balances()

    assert dry_run.scanned == 2
    assert [drift.customer_id for drift in dry_run.drifts] == [drifted.id]
    assert dry_run.drifts[0].difference == -300
    assert not dry_run.applied
    assert Customer.from_record(record_store.get(Collection.CUSTOMERS, drifted.id)).balance == 300

    applied = pos.reconcile_customer_balances(apply=True)

    assert applied.is_complete
    repaired = Customer.from_record(record_store.get(Collection.CUSTOMERS, drifted.id))
    assert (repaired.balance, repaired.version) == (0, drifted.version + 1)
    assert pos.customer_history(healthy.id).balance == 200
    assert pos.reconcile_customer_balances().drifts == ()


def test_backfill_leaves_year_month_written_after_the_scan(record_store: RecordStore) -> None:
    (sale_id,) = _legacy_sales(record_store, 1)

    def tag_sale(scan: int) -> None:
        if scan != 1:
            return
        version = record_store.get(Collection.SALES, sale_id)["version"]
        record_store.transact(
            [
                Mutation.conditional_update(
                    Collection.SALES,
                    sale_id,
                    SetAttribute("year_month", "2025-12"),
                    condition=eq("version", version),
                )
            ]
        )

    pos = PointOfSale(RecordingStore(record_store, after_scan=tag_sale))

    report = pos.backfill_sale_year_month(apply=True)

    assert report.planned == 1
    assert report.outcome is not None
    assert report.outcome.failed_chunks == (0,)
    assert record_store.get(Collection.SALES, sale_id)["year_month"] == "2025-12"
    assert pos.backfill_sale_year_month(apply=True).planned == 0


def test_reconciliation_keeps_deposit_committed_between_scans(
    record_store: RecordStore,
) -> None:
    customer = PointOfSale(record_store).register_customer(
        name="Hana", created_by=CASHIER, opening_deposit=200
    )

    def concurrent_deposit(scan: int) -> None:
        if scan == 1:
            PointOfSale(record_store).deposit(
                AccountMovement(customer_id=customer.id, amount=500, created_by="other")
            )

    pos = PointOfSale(RecordingStore(record_store, after_scan=concurrent_deposit))

    report = pos.reconcile_customer_balances(apply=True)

    assert not report.is_complete
    stored = Customer.from_record(record_store.get(Collection.CUSTOMERS, customer.id))
    assert stored.balance == 700
    assert pos.customer_history(customer.id).balance == 700
    assert pos.reconcile_customer_balances().drifts == ()
