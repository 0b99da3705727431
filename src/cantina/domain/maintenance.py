"""Bulk repair jobs submitted through the batch executor.

Plans are always derived from the current stored state and every correction
is guarded, so running a job again after a partial failure only resubmits the
work that is still outstanding. Nothing is written unless ``apply`` is set.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cantina.domain.commit.conditions import eq, is_null
from cantina.domain.commit.mutations import SetAttribute, versioned_update
from cantina.domain.model.base import year_month_of
from cantina.domain.model.customer import Customer, LedgerEntry, ledger_balance
from cantina.domain.model.enums import Collection

if TYPE_CHECKING:
    from cantina.domain.commit.batch import BatchExecutor, BatchOutcome
    from cantina.domain.commit.mutations import Mutation
    from cantina.domain.ports.store import RecordReader

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MaintenanceReport:
    scanned: int
    planned: int
    outcome: BatchOutcome | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is not None

    @property
    def is_complete(self) -> bool:
        return self.outcome is None or self.outcome.is_complete

    def raise_for_failures(self) -> None:
        if self.outcome is not None:
            self.outcome.raise_for_failures()


@dataclass(frozen=True, slots=True)
class BalanceDrift:
    customer_id: str
    recorded_balance: int
    ledger_balance: int
    version: int

    @property
    def difference(self) -> int:
        return self.ledger_balance - self.recorded_balance


@dataclass(frozen=True, slots=True)
class ReconciliationReport(MaintenanceReport):
    drifts: tuple[BalanceDrift, ...] = ()


def _submit(
    executor: BatchExecutor,
    mutations: list[Mutation],
    *,
    apply: bool,
    job: str,
) -> BatchOutcome | None:
    if not apply:
        log.info("%s: dry run, %d change(s) planned", job, len(mutations))
        return None
    if not mutations:
        log.info("%s: nothing to do", job)
    return executor.commit_batches(mutations)


def plan_sale_year_month_backfill(reader: RecordReader) -> tuple[int, list[Mutation]]:
    """Scan all sales and plan ``year_month`` for those that still lack it."""

    sales = reader.scan(Collection.SALES)
    mutations = [
        versioned_update(
            Collection.SALES,
            record["id"],
            SetAttribute("year_month", year_month_of(record["created_at"])),
            expected_version=record["version"],
            condition=is_null("year_month"),
        )
        for record in sales
        if record.get("year_month") is None
    ]
    return len(sales), mutations


def backfill_sale_year_month(
    reader: RecordReader, executor: BatchExecutor, *, apply: bool = False
) -> MaintenanceReport:
    scanned, mutations = plan_sale_year_month_backfill(reader)
    log.info("Year-month backfill: %d sale(s) scanned, %d missing", scanned, len(mutations))
    outcome = _submit(executor, mutations, apply=apply, job="Year-month backfill")
    return MaintenanceReport(scanned=scanned, planned=len(mutations), outcome=outcome)


def find_balance_drifts(reader: RecordReader) -> tuple[int, list[BalanceDrift]]:
    """Customers whose running balance differs from the sum of their ledger.

    Customers are read before the ledger. A movement committed in between is
    then counted in the ledger sum but not in the snapshot, and the correction
    planned from that snapshot fails its version guard instead of undoing it.
    """

    customers = [Customer.from_record(record) for record in reader.scan(Collection.CUSTOMERS)]
    entries: defaultdict[str, list[LedgerEntry]] = defaultdict(list)
    for record in reader.scan(Collection.CUSTOMER_TRANSACTIONS):
        entry = LedgerEntry.from_record(record)
        entries[entry.customer_id].append(entry)
    totals = {customer.id: ledger_balance(entries[customer.id]) for customer in customers}
    drifts = [
        BalanceDrift(
            customer_id=customer.id,
            recorded_balance=customer.balance,
            ledger_balance=totals[customer.id],
            version=customer.version,
        )
        for customer in customers
        if customer.balance != totals[customer.id]
    ]
    return len(customers), drifts


def reconcile_customer_balances(
    reader: RecordReader, executor: BatchExecutor, *, apply: bool = False
) -> ReconciliationReport:
    """Reset drifted balances to their ledger sum.

    A customer whose balance moved since the scan fails its guard and is left
    for the next run.
    """

    scanned, drifts = find_balance_drifts(reader)
    for drift in drifts:
        log.warning(
            "Customer %s balance %d differs from ledger %d",
            drift.customer_id,
            drift.recorded_balance,
            drift.ledger_balance,
        )
    mutations = [
        versioned_update(
            Collection.CUSTOMERS,
            drift.customer_id,
            SetAttribute("balance", drift.ledger_balance),
            expected_version=drift.version,
            condition=eq("balance", drift.recorded_balance),
        )
        for drift in drifts
    ]
    outcome = _submit(executor, mutations, apply=apply, job="Balance reconciliation")
    return ReconciliationReport(
        scanned=scanned,
        planned=len(mutations),
        outcome=outcome,
        drifts=tuple(drifts),
    )
