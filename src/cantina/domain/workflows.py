"""Business workflows: read a snapshot, assemble, commit, diagnose and retry.

Every attempt re-reads the entities it touches and reuses the caller's
identifiers (sale id, refund id, ledger entry id), so an attempt that follows
an ambiguous failure either finds the earlier attempt applied or fails its
predicates. A failed predicate is diagnosed against fresh state: a broken
business rule surfaces as a user-facing error, anything else is treated as a
version race and retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cantina.domain.assemblers import (
    assemble_customer_registration,
    assemble_deposit,
    assemble_menu_item_registration,
    assemble_refund,
    assemble_sale_confirmation,
    assemble_withdrawal,
    ensure_order_fits,
)
from cantina.domain.assemblers.refunds import sold_quantities
from cantina.domain.commit.conditions import eq
from cantina.domain.commit.coordinator import DEFAULT_MAX_ATTEMPTS
from cantina.domain.commit.errors import ConditionFailedError, TransientCommitError
from cantina.domain.errors import (
    AlreadyRefundedError,
    ConcurrencyConflictError,
    InsufficientBalanceError,
    RecordNotFoundError,
    StockUnavailableError,
)
from cantina.domain.model.catalog import MenuItem
from cantina.domain.model.customer import Customer, LedgerEntry
from cantina.domain.model.enums import Collection
from cantina.domain.model.sale import Sale

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Any

    from cantina.domain.assemblers import AccountMovement, RefundRequest, SaleRequest
    from cantina.domain.commit.coordinator import CommitCoordinator
    from cantina.domain.ports.store import RecordReader

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitContext:
    """What a workflow needs: read access, the coordinator and a retry budget."""

    reader: RecordReader
    coordinator: CommitCoordinator
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


@dataclass(frozen=True, slots=True)
class CustomerHistory:
    customer: Customer
    entries: tuple[LedgerEntry, ...]

    @property
    def balance(self) -> int:
        return self.customer.balance


def _run_with_retries[TResult](
    context: CommitContext,
    operation: str,
    attempt: Callable[[], TResult],
    diagnose: Callable[[], TResult | None],
) -> TResult:
    """Run ``attempt`` until it succeeds, a diagnosis resolves it or attempts run out.

    ``diagnose`` runs after a failed predicate. It raises for a broken business
    rule, returns the result when the change turns out to be applied already,
    and returns ``None`` for a plain version race. A transient store failure,
    whether raised by the commit or by the re-reads of a diagnosis, uses up one
    attempt and is re-raised once none are left.
    """

    last_conflict: ConditionFailedError | None = None
    for number in range(1, context.max_attempts + 1):
        try:
            try:
                return attempt()
            except ConditionFailedError as exc:
                last_conflict = exc
                resolved = diagnose()
            if resolved is not None:
                log.info("%s was already applied", operation)
                return resolved
            log.info(
                "%s conflicted with a concurrent change (attempt %d/%d)",
                operation,
                number,
                context.max_attempts,
            )
        except TransientCommitError:
            if number == context.max_attempts:
                raise
            log.info(
                "%s hit a transient store failure (attempt %d/%d)",
                operation,
                number,
                context.max_attempts,
            )
    raise ConcurrencyConflictError(operation, context.max_attempts) from last_conflict


def _read_menu_items(reader: RecordReader, menu_item_ids: Iterable[str]) -> dict[str, MenuItem]:
    items: dict[str, MenuItem] = {}
    for menu_item_id in menu_item_ids:
        record = reader.get(Collection.MENU_ITEMS, menu_item_id)
        if record is not None:
            items[menu_item_id] = MenuItem.from_record(record)
    return items


def _read_customer(reader: RecordReader, customer_id: str | None) -> Customer | None:
    if customer_id is None:
        return None
    record = reader.get(Collection.CUSTOMERS, customer_id)
    return None if record is None else Customer.from_record(record)


def _require_customer(reader: RecordReader, customer_id: str) -> Customer:
    customer = _read_customer(reader, customer_id)
    if customer is None:
        raise RecordNotFoundError(Collection.CUSTOMERS, customer_id)
    return customer


def _read_sale(reader: RecordReader, sale_id: str) -> Sale | None:
    record = reader.get(Collection.SALES, sale_id)
    return None if record is None else Sale.from_record(record)


def _read_ledger_entry(reader: RecordReader, entry_id: str) -> LedgerEntry | None:
    record = reader.get(Collection.CUSTOMER_TRANSACTIONS, entry_id)
    return None if record is None else LedgerEntry.from_record(record)


def confirm_sale(context: CommitContext, request: SaleRequest) -> Sale:
    """Confirm an order as a sale in one atomic commit.

    Raises ``OrderTooLargeError`` before reading anything when the order cannot
    fit one commit, ``StockUnavailableError`` or ``InsufficientBalanceError``
    when the stored state rules the sale out, and ``ConcurrencyConflictError``
    when retries are exhausted.
    """

    reader = context.reader
    ensure_order_fits(request, context.coordinator.ceiling)
    quantities = request.order.quantities()

    def attempt() -> Sale:
        existing = _read_sale(reader, request.sale_id)
        if existing is not None:
            return existing
        assembled = assemble_sale_confirmation(
            request,
            menu_items=_read_menu_items(reader, quantities),
            customer=_read_customer(reader, request.customer_id),
            ceiling=context.coordinator.ceiling,
        )
        context.coordinator.commit(assembled.mutations)
        return assembled.entity

    def diagnose() -> Sale | None:
        existing = _read_sale(reader, request.sale_id)
        if existing is not None:
            return existing
        for menu_item_id, quantity in quantities.items():
            record = reader.get(Collection.MENU_ITEMS, menu_item_id)
            if record is None:
                raise RecordNotFoundError(Collection.MENU_ITEMS, menu_item_id)
            item = MenuItem.from_record(record)
            if item.stock is not None and item.stock < quantity:
                raise StockUnavailableError(item.id, quantity, item.stock)
        on_account = request.account_amount
        customer = _read_customer(reader, request.customer_id)
        if on_account and customer is not None and not customer.can_cover(on_account):
            raise InsufficientBalanceError(customer.id, on_account, customer.available_credit)
        return None

    sale = _run_with_retries(context, f"Sale {request.sale_id}", attempt, diagnose)
    log.info("Confirmed sale %s (total %d)", sale.id, sale.total)
    return sale


def refund_sale(context: CommitContext, request: RefundRequest) -> Sale:
    """Refund a sale exactly once, reversing stock and account effects atomically."""

    reader = context.reader

    def current_sale() -> Sale:
        sale = _read_sale(reader, request.sale_id)
        if sale is None:
            raise RecordNotFoundError(Collection.SALES, request.sale_id)
        return sale

    def applied(sale: Sale) -> Sale | None:
        if not sale.is_refunded:
            return None
        if sale.refund_id == request.refund_id:
            return sale
        raise AlreadyRefundedError(sale.id)

    def attempt() -> Sale:
        sale = current_sale()
        done = applied(sale)
        if done is not None:
            return done
        assembled = assemble_refund(
            request,
            sale=sale,
            menu_items=_read_menu_items(reader, sold_quantities(sale)),
            customer=_read_customer(reader, sale.customer_id),
        )
        if assembled.skipped_menu_item_ids:
            log.warning(
                "Refund of sale %s skips restocking removed menu items: %s",
                sale.id,
                ", ".join(assembled.skipped_menu_item_ids),
            )
        context.coordinator.commit(assembled.mutations)
        return assembled.sale

    def diagnose() -> Sale | None:
        return applied(current_sale())

    sale = _run_with_retries(context, f"Refund of sale {request.sale_id}", attempt, diagnose)
    log.info("Refunded sale %s", sale.id)
    return sale


def _account_movement(
    context: CommitContext,
    movement: AccountMovement,
    *,
    withdrawal: bool,
) -> LedgerEntry:
    reader = context.reader
    assemble = assemble_withdrawal if withdrawal else assemble_deposit

    def attempt() -> LedgerEntry:
        existing = _read_ledger_entry(reader, movement.entry_id)
        if existing is not None:
            return existing
        customer = _require_customer(reader, movement.customer_id)
        assembled = assemble(movement, customer=customer)
        context.coordinator.commit(assembled.mutations)
        return assembled.entity

    def diagnose() -> LedgerEntry | None:
        existing = _read_ledger_entry(reader, movement.entry_id)
        if existing is not None:
            return existing
        customer = _require_customer(reader, movement.customer_id)
        if withdrawal and customer.balance < movement.amount:
            raise InsufficientBalanceError(customer.id, movement.amount, max(customer.balance, 0))
        return None

    kind = "Withdrawal" if withdrawal else "Deposit"
    entry = _run_with_retries(context, f"{kind} {movement.entry_id}", attempt, diagnose)
    log.info("%s of %d for customer %s recorded", kind, entry.amount, entry.customer_id)
    return entry


def deposit(context: CommitContext, movement: AccountMovement) -> LedgerEntry:
    return _account_movement(context, movement, withdrawal=False)


def withdraw(context: CommitContext, movement: AccountMovement) -> LedgerEntry:
    return _account_movement(context, movement, withdrawal=True)


def register_menu_item(context: CommitContext, **fields: Any) -> MenuItem:
    assembled = assemble_menu_item_registration(**fields)
    context.coordinator.commit(assembled.mutations)
    log.info("Registered menu item %s", assembled.entity.id)
    return assembled.entity


def register_customer(context: CommitContext, **fields: Any) -> Customer:
    assembled = assemble_customer_registration(**fields)
    context.coordinator.commit(assembled.mutations)
    log.info("Registered customer %s", assembled.entity.id)
    return assembled.entity


def get_sale(reader: RecordReader, sale_id: str) -> Sale:
    sale = _read_sale(reader, sale_id)
    if sale is None:
        raise RecordNotFoundError(Collection.SALES, sale_id)
    return sale


def customer_history(reader: RecordReader, customer_id: str) -> CustomerHistory:
    """Ledger entries of a customer, newest first, with the current balance."""

    customer = _require_customer(reader, customer_id)
    records = reader.scan(Collection.CUSTOMER_TRANSACTIONS, condition=eq("customer_id", customer_id))
    entries = sorted(
        (LedgerEntry.from_record(record) for record in records),
        key=lambda entry: entry.created_at,
        reverse=True,
    )
    return CustomerHistory(customer, tuple(entries))
