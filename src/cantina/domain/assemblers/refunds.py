"""Refund of a confirmed sale as one atomic commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cantina.domain.commit.conditions import eq
from cantina.domain.commit.mutations import SetAttribute, versioned_update
from cantina.domain.errors import InvalidRequestError, RecordNotFoundError
from cantina.domain.model.base import new_id, utcnow
from cantina.domain.model.customer import LedgerEntry
from cantina.domain.model.enums import AuditAction, Collection, EntityType, LedgerEntryKind

from .accounts import balance_credit
from .catalog import stock_restore
from .common import audit_mutation, ledger_mutation

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cantina.domain.commit.mutations import Mutation
    from cantina.domain.model.catalog import MenuItem
    from cantina.domain.model.customer import Customer
    from cantina.domain.model.sale import Sale


@dataclass(frozen=True, slots=True, kw_only=True)
class RefundRequest:
    sale_id: str
    reason: str
    refunded_by: str
    refund_id: str = field(default_factory=new_id)


@dataclass(frozen=True, slots=True)
class AssembledRefund:
    sale: Sale
    mutations: tuple[Mutation, ...]
    skipped_menu_item_ids: tuple[str, ...] = ()


def sold_quantities(sale: Sale) -> dict[str, int]:
    quantities: dict[str, int] = {}
    for line in sale.items:
        quantities[line.menu_item_id] = quantities.get(line.menu_item_id, 0) + line.quantity
    return quantities


def assemble_refund(
    request: RefundRequest,
    *,
    sale: Sale,
    menu_items: Mapping[str, MenuItem],
    customer: Customer | None,
    now: datetime | None = None,
) -> AssembledRefund:
    """Flip the sale to refunded and reverse its stock and account effects.

    Menu items removed since the sale cannot be restocked; they are reported in
    ``skipped_menu_item_ids``. The refund flag only flips while the stored sale
    is still unrefunded.
    """

    reason = request.reason.strip()
    if not reason:
        raise InvalidRequestError("A refund needs a reason")
    if sale.id != request.sale_id:
        raise InvalidRequestError("Sale snapshot does not match the request")

    at = now or utcnow()
    mutations: list[Mutation] = [
        versioned_update(
            Collection.SALES,
            sale.id,
            SetAttribute("is_refunded", True),
            SetAttribute("refund_id", request.refund_id),
            SetAttribute("refund_reason", reason),
            SetAttribute("refunded_at", at),
            SetAttribute("refunded_by", request.refunded_by),
            expected_version=sale.version,
            condition=eq("is_refunded", False),
        )
    ]

    skipped: list[str] = []
    for menu_item_id, quantity in sold_quantities(sale).items():
        item = menu_items.get(menu_item_id)
        if item is None:
            skipped.append(menu_item_id)
            continue
        mutations.append(stock_restore(item, quantity))

    on_account = sale.account_amount
    if on_account and sale.customer_id is not None:
        if customer is None:
            raise RecordNotFoundError(Collection.CUSTOMERS, sale.customer_id)
        mutations.append(balance_credit(customer, on_account, require_active=False))
        mutations.append(
            ledger_mutation(
                LedgerEntry(
                    id=new_id(),
                    customer_id=customer.id,
                    kind=LedgerEntryKind.REFUND,
                    amount=on_account,
                    related_sale_id=sale.id,
                    description=reason,
                    created_at=at,
                    created_by=request.refunded_by,
                )
            )
        )

    mutations.append(
        audit_mutation(
            EntityType.SALE,
            sale.id,
            AuditAction.SALE_REFUNDED,
            user_id=request.refunded_by,
            at=at,
            details={"refund_id": request.refund_id, "reason": reason},
        )
    )
    refunded = sale.refunded(
        refund_id=request.refund_id, reason=reason, refunded_by=request.refunded_by, at=at
    )
    return AssembledRefund(refunded, tuple(mutations), tuple(skipped))
