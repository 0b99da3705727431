"""Orders, payments and the confirmed sale record."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .base import INITIAL_VERSION
from .enums import PaymentMethod

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from cantina.domain.commit.mutations import Record


@dataclass(frozen=True, slots=True)
class OrderLine:
    menu_item_id: str
    quantity: int


@dataclass(frozen=True, slots=True, kw_only=True)
class Order:
    """Pending basket; becomes a sale once confirmed."""

    id: str
    event_id: str
    lines: tuple[OrderLine, ...]

    def quantities(self) -> dict[str, int]:
        """Requested quantity per menu item, merging repeated lines in first-seen order."""

        merged: dict[str, int] = {}
        for line in self.lines:
            merged[line.menu_item_id] = merged.get(line.menu_item_id, 0) + line.quantity
        return merged


@dataclass(frozen=True, slots=True)
class PaymentPart:
    method: PaymentMethod
    amount: int

    def to_record(self) -> Record:
        return {"method": str(self.method), "amount": self.amount}

    @classmethod
    def from_record(cls, record: Record) -> PaymentPart:
        return cls(PaymentMethod(record["method"]), record["amount"])


@dataclass(frozen=True, slots=True, kw_only=True)
class SaleLine:
    """Sold quantity of one menu item, priced at confirmation time."""

    menu_item_id: str
    description: str
    quantity: int
    unit_price: int

    @property
    def total(self) -> int:
        return self.quantity * self.unit_price

    def to_record(self) -> Record:
        return {
            "menu_item_id": self.menu_item_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total": self.total,
        }

    @classmethod
    def from_record(cls, record: Record) -> SaleLine:
        return cls(
            menu_item_id=record["menu_item_id"],
            description=record["description"],
            quantity=record["quantity"],
            unit_price=record["unit_price"],
        )


def account_amount(payments: Iterable[PaymentPart]) -> int:
    """Part of the payments drawn on the customer account."""

    return sum(part.amount for part in payments if part.method.draws_on_account)


@dataclass(frozen=True, slots=True, kw_only=True)
class Sale:
    id: str
    event_id: str
    order_id: str
    items: tuple[SaleLine, ...]
    payments: tuple[PaymentPart, ...]
    total: int
    created_by: str
    created_at: datetime
    year_month: str | None
    customer_id: str | None = None
    is_paid: bool = True
    is_refunded: bool = False
    refund_id: str | None = None
    refund_reason: str | None = None
    refunded_at: datetime | None = None
    refunded_by: str | None = None
    version: int = INITIAL_VERSION

    @property
    def account_amount(self) -> int:
        return account_amount(self.payments)

    def refunded(self, *, refund_id: str, reason: str, refunded_by: str, at: datetime) -> Sale:
        return replace(
            self,
            is_refunded=True,
            refund_id=refund_id,
            refund_reason=reason,
            refunded_by=refunded_by,
            refunded_at=at,
            version=self.version + 1,
        )

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "order_id": self.order_id,
            "items": [line.to_record() for line in self.items],
            "payments": [part.to_record() for part in self.payments],
            "total": self.total,
            "customer_id": self.customer_id,
            "is_paid": self.is_paid,
            "is_refunded": self.is_refunded,
            "refund_id": self.refund_id,
            "refund_reason": self.refund_reason,
            "refunded_at": self.refunded_at,
            "refunded_by": self.refunded_by,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "year_month": self.year_month,
            "version": self.version,
        }

    @classmethod
    def from_record(cls, record: Record) -> Sale:
        return cls(
            id=record["id"],
            event_id=record["event_id"],
            order_id=record["order_id"],
            items=tuple(SaleLine.from_record(line) for line in record["items"]),
            payments=tuple(PaymentPart.from_record(part) for part in record["payments"]),
            total=record["total"],
            customer_id=record.get("customer_id"),
            is_paid=record["is_paid"],
            is_refunded=record["is_refunded"],
            refund_id=record.get("refund_id"),
            refund_reason=record.get("refund_reason"),
            refunded_at=record.get("refunded_at"),
            refunded_by=record.get("refunded_by"),
            created_by=record["created_by"],
            created_at=record["created_at"],
            year_month=record.get("year_month"),
            version=record["version"],
        )
