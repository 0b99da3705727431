"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cantina.adapters.sqlalchemy.engine import (
    configured_engine,
    get_record_store,
    is_started,
    startup,
)
from cantina.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from cantina.config import CommitConfig, get_commit_config
from cantina.domain import maintenance, workflows
from cantina.domain.commit import BatchExecutor, CommitCoordinator
from cantina.domain.model import DEFAULT_CREDIT_LIMIT, UNLIMITED_STOCK, PaymentMethod

if TYPE_CHECKING:
    from cantina.domain.assemblers import AccountMovement, RefundRequest, SaleRequest
    from cantina.domain.maintenance import MaintenanceReport, ReconciliationReport
    from cantina.domain.model import Customer, LedgerEntry, MenuItem, Sale
    from cantina.domain.ports.store import RecordStore
    from cantina.domain.workflows import CustomerHistory

log = getLogger(__name__)


class PointOfSale:
    """Facade wiring one record store to the commit coordinator and workflows.

    Business operations always run as single bounded commits; only the
    maintenance jobs go through the batch executor.
    """

    def __init__(self, store: RecordStore, *, config: CommitConfig | None = None) -> None:
        self.config = config or CommitConfig()
        self.store = store
        self.coordinator = CommitCoordinator(store, ceiling=self.config.ceiling)
        self.executor = BatchExecutor(self.coordinator)
        self.context = workflows.CommitContext(
            store, self.coordinator, max_attempts=self.config.max_attempts
        )

    def confirm_sale(self, request: SaleRequest) -> Sale:
        return workflows.confirm_sale(self.context, request)

    def refund_sale(self, request: RefundRequest) -> Sale:
        return workflows.refund_sale(self.context, request)

    def deposit(self, movement: AccountMovement) -> LedgerEntry:
        return workflows.deposit(self.context, movement)

    def withdraw(self, movement: AccountMovement) -> LedgerEntry:
        return workflows.withdraw(self.context, movement)

    def register_menu_item(
        self,
        *,
        event_id: str,
        description: str,
        price: int,
        created_by: str,
        stock: int | None = UNLIMITED_STOCK,
    ) -> MenuItem:
        return workflows.register_menu_item(
            self.context,
            event_id=event_id,
            description=description,
            price=price,
            created_by=created_by,
            stock=stock,
        )

    def register_customer(
        self,
        *,
        name: str,
        created_by: str,
        credit_limit: int = DEFAULT_CREDIT_LIMIT,
        opening_deposit: int = 0,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> Customer:
        return workflows.register_customer(
            self.context,
            name=name,
            created_by=created_by,
            credit_limit=credit_limit,
            opening_deposit=opening_deposit,
            payment_method=payment_method,
        )

    def get_sale(self, sale_id: str) -> Sale:
        return workflows.get_sale(self.store, sale_id)

    def customer_history(self, customer_id: str) -> CustomerHistory:
        return workflows.customer_history(self.store, customer_id)

    def backfill_sale_year_month(self, *, apply: bool = False) -> MaintenanceReport:
        return maintenance.backfill_sale_year_month(self.store, self.executor, apply=apply)

    def reconcile_customer_balances(self, *, apply: bool = False) -> ReconciliationReport:
        return maintenance.reconcile_customer_balances(self.store, self.executor, apply=apply)


def build_point_of_sale(
    *,
    store: RecordStore | None = None,
    commit_config: CommitConfig | None = None,
) -> PointOfSale:
    """Build the facade, defaulting to the SQLAlchemy store and environment config."""

    config = commit_config or get_commit_config()
    if store is None:
        if not is_started():
            startup()
        store = get_record_store(max_transaction_items=config.store_transaction_limit)
    return PointOfSale(store, config=config)


def initialise_database(*, database_uri: str | None = None) -> str | None:
    """Create or upgrade the schema and return the resulting revision."""

    engine = configured_engine()
    if engine is None:
        engine = startup(database_uri=database_uri)
    else:
        upgrade_head(engine=engine)
    revision = current_revision(engine)
    log.info("Database schema at revision %s", revision)
    return revision


def run_sale_year_month_backfill(
    *, apply: bool = False, point_of_sale: PointOfSale | None = None
) -> MaintenanceReport:
    pos = point_of_sale or build_point_of_sale()
    log.info("Starting year-month backfill (apply=%s)", apply)
    report = pos.backfill_sale_year_month(apply=apply)
    log.info(
        "Finished year-month backfill: scanned=%d, planned=%d, applied=%s",
        report.scanned,
        report.planned,
        report.applied,
    )
    report.raise_for_failures()
    return report


def run_balance_reconciliation(
    *, apply: bool = False, point_of_sale: PointOfSale | None = None
) -> ReconciliationReport:
    pos = point_of_sale or build_point_of_sale()
    log.info("Starting balance reconciliation (apply=%s)", apply)
    report = pos.reconcile_customer_balances(apply=apply)
    log.info(
        "Finished balance reconciliation: customers=%d, drifted=%d, applied=%s",
        report.scanned,
        len(report.drifts),
        report.applied,
    )
    report.raise_for_failures()
    return report
