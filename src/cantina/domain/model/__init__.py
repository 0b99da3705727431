"""Point-of-sale domain model."""

from __future__ import annotations

from .audit import AuditEntry
from .base import INITIAL_VERSION, new_id, utcnow, year_month_of
from .catalog import UNLIMITED_STOCK, MenuItem
from .customer import DEFAULT_CREDIT_LIMIT, Customer, LedgerEntry, ledger_balance
from .enums import (
    AuditAction,
    Collection,
    EntityType,
    LedgerDirection,
    LedgerEntryKind,
    PaymentMethod,
)
from .sale import Order, OrderLine, PaymentPart, Sale, SaleLine, account_amount

__all__ = [
    "DEFAULT_CREDIT_LIMIT",
    "INITIAL_VERSION",
    "UNLIMITED_STOCK",
    "AuditAction",
    "AuditEntry",
    "Collection",
    "Customer",
    "EntityType",
    "LedgerDirection",
    "LedgerEntry",
    "LedgerEntryKind",
    "MenuItem",
    "Order",
    "OrderLine",
    "PaymentMethod",
    "PaymentPart",
    "Sale",
    "SaleLine",
    "account_amount",
    "ledger_balance",
    "new_id",
    "utcnow",
    "year_month_of",
]
