"""Sale confirmation: one order becomes one atomic commit.

The commit holds a guarded stock decrement per distinct menu item, the sale
record, an optional balance debit with its ledger entry, and an audit entry.
An order whose commit would exceed the ceiling is rejected up front; it is
never spread over several commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cantina.domain.commit.mutations import Mutation
from cantina.domain.errors import InvalidRequestError, OrderTooLargeError, RecordNotFoundError
from cantina.domain.model.base import new_id, utcnow, year_month_of
from cantina.domain.model.customer import LedgerEntry
from cantina.domain.model.enums import (
    AuditAction,
    Collection,
    EntityType,
    LedgerEntryKind,
    PaymentMethod,
)
from cantina.domain.model.sale import Sale, SaleLine, account_amount

from .accounts import balance_debit
from .catalog import stock_decrement
from .common import Assembled, audit_mutation, ledger_mutation, require_positive

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cantina.domain.model.catalog import MenuItem
    from cantina.domain.model.customer import Customer
    from cantina.domain.model.sale import Order, PaymentPart

# sale record + audit entry
_SALE_OVERHEAD = 2
# balance debit + ledger entry
_ACCOUNT_OVERHEAD = 2


@dataclass(frozen=True, slots=True, kw_only=True)
class SaleRequest:
    """Confirmation request; ``sale_id`` stays the same across retries."""

    order: Order
    payments: tuple[PaymentPart, ...]
    created_by: str
    customer_id: str | None = None
    sale_id: str = field(default_factory=new_id)

    @property
    def account_amount(self) -> int:
        return account_amount(self.payments)


def max_order_lines(ceiling: int, *, on_account: bool = True) -> int:
    """Distinct menu items a single sale may contain under ``ceiling``."""

    overhead = _SALE_OVERHEAD + (_ACCOUNT_OVERHEAD if on_account else 0)
    return max(ceiling - overhead, 0)


def sale_mutation_count(request: SaleRequest) -> int:
    overhead = _SALE_OVERHEAD + (_ACCOUNT_OVERHEAD if request.account_amount else 0)
    return len(request.order.quantities()) + overhead


def ensure_order_fits(request: SaleRequest, ceiling: int) -> None:
    count = sale_mutation_count(request)
    if count > ceiling:
        raise OrderTooLargeError(
            count,
            ceiling,
            max_order_lines(ceiling, on_account=bool(request.account_amount)),
        )


def _validate(request: SaleRequest) -> None:
    if not request.order.lines:
        raise InvalidRequestError("Order has no lines")
    for line in request.order.lines:
        require_positive(line.quantity, f"Quantity of {line.menu_item_id}")
    if not request.payments:
        raise InvalidRequestError("Sale needs at least one payment")
    for part in request.payments:
        require_positive(part.amount, f"{part.method} payment")


def assemble_sale_confirmation(
    request: SaleRequest,
    *,
    menu_items: Mapping[str, MenuItem],
    customer: Customer | None,
    ceiling: int,
    now: datetime | None = None,
) -> Assembled[Sale]:
    _validate(request)
    ensure_order_fits(request, ceiling)

    lines: list[SaleLine] = []
    mutations: list[Mutation] = []
    for menu_item_id, quantity in request.order.quantities().items():
        item = menu_items.get(menu_item_id)
        if item is None:
            raise RecordNotFoundError(Collection.MENU_ITEMS, menu_item_id)
        if item.event_id != request.order.event_id:
            raise InvalidRequestError(f"Menu item {item.id} is not on this event's menu")
        lines.append(
            SaleLine(
                menu_item_id=item.id,
                description=item.description,
                quantity=quantity,
                unit_price=item.price,
            )
        )
        mutations.append(stock_decrement(item, quantity))

    total = sum(line.total for line in lines)
    paid = sum(part.amount for part in request.payments)
    if paid != total:
        raise InvalidRequestError(f"Payments add up to {paid} but the order total is {total}")

    on_account = request.account_amount
    if request.customer_id is not None:
        if customer is None:
            raise RecordNotFoundError(Collection.CUSTOMERS, request.customer_id)
        if customer.id != request.customer_id:
            raise InvalidRequestError("Customer snapshot does not match the request")
        if customer.is_deleted:
            raise InvalidRequestError(f"Customer {customer.id} is deleted")
    elif on_account:
        raise InvalidRequestError("Paying with balance or on credit requires a customer")

    at = now or utcnow()
    sale = Sale(
        id=request.sale_id,
        event_id=request.order.event_id,
        order_id=request.order.id,
        items=tuple(lines),
        payments=request.payments,
        total=total,
        customer_id=request.customer_id,
        is_paid=all(part.method is not PaymentMethod.CREDIT for part in request.payments),
        created_by=request.created_by,
        created_at=at,
        year_month=year_month_of(at),
    )
    mutations.append(Mutation.create(Collection.SALES, sale.id, sale.to_record()))

    if on_account and customer is not None:
        mutations.append(balance_debit(customer, on_account))
        mutations.append(
            ledger_mutation(
                LedgerEntry(
                    id=new_id(),
                    customer_id=customer.id,
                    kind=LedgerEntryKind.PURCHASE,
                    amount=on_account,
                    related_sale_id=sale.id,
                    description=f"Order {request.order.id}",
                    created_at=at,
                    created_by=request.created_by,
                )
            )
        )

    mutations.append(
        audit_mutation(
            EntityType.SALE,
            sale.id,
            AuditAction.SALE_CONFIRMED,
            user_id=request.created_by,
            at=at,
            details={"order_id": request.order.id, "total": total},
        )
    )
    return Assembled(sale, tuple(mutations))
