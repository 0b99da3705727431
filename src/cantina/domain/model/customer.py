"""Customer accounts and their balance ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .base import INITIAL_VERSION
from .enums import LedgerDirection, LedgerEntryKind, PaymentMethod

if TYPE_CHECKING:
    from datetime import datetime

    from cantina.domain.commit.mutations import Record

DEFAULT_CREDIT_LIMIT: Final[int] = 10_000


@dataclass(frozen=True, slots=True, kw_only=True)
class Customer:
    """Account holder. ``balance`` is positive for credit held, negative for debt."""

    id: str
    name: str
    created_at: datetime
    credit_limit: int = DEFAULT_CREDIT_LIMIT
    balance: int = 0
    deleted_at: datetime | None = None
    version: int = INITIAL_VERSION

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def available_credit(self) -> int:
        return self.balance + self.credit_limit

    def can_cover(self, amount: int) -> bool:
        return self.balance - amount >= -self.credit_limit

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "name": self.name,
            "credit_limit": self.credit_limit,
            "balance": self.balance,
            "created_at": self.created_at,
            "deleted_at": self.deleted_at,
            "version": self.version,
        }

    @classmethod
    def from_record(cls, record: Record) -> Customer:
        return cls(
            id=record["id"],
            name=record["name"],
            credit_limit=record["credit_limit"],
            balance=record["balance"],
            created_at=record["created_at"],
            deleted_at=record.get("deleted_at"),
            version=record["version"],
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class LedgerEntry:
    """Immutable movement on a customer account."""

    id: str
    customer_id: str
    kind: LedgerEntryKind
    amount: int
    created_at: datetime
    created_by: str
    related_sale_id: str | None = None
    payment_method: PaymentMethod | None = None
    description: str | None = None

    @property
    def direction(self) -> LedgerDirection:
        return self.kind.direction

    @property
    def signed_amount(self) -> int:
        return self.amount if self.direction is LedgerDirection.CREDIT else -self.amount

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "kind": str(self.kind),
            "direction": str(self.direction),
            "amount": self.amount,
            "related_sale_id": self.related_sale_id,
            "payment_method": None if self.payment_method is None else str(self.payment_method),
            "description": self.description,
            "created_at": self.created_at,
            "created_by": self.created_by,
        }

    @classmethod
    def from_record(cls, record: Record) -> LedgerEntry:
        method = record.get("payment_method")
        return cls(
            id=record["id"],
            customer_id=record["customer_id"],
            kind=LedgerEntryKind(record["kind"]),
            amount=record["amount"],
            related_sale_id=record.get("related_sale_id"),
            payment_method=None if method is None else PaymentMethod(method),
            description=record.get("description"),
            created_at=record["created_at"],
            created_by=record["created_by"],
        )


def ledger_balance(entries: list[LedgerEntry]) -> int:
    """Signed sum of the given ledger entries."""

    return sum(entry.signed_amount for entry in entries)
