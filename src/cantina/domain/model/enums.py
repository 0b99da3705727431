"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Collection(StrEnum):
    """Names of the keyed record collections in the store."""

    MENU_ITEMS = "menu_items"
    CUSTOMERS = "customers"
    SALES = "sales"
    CUSTOMER_TRANSACTIONS = "customer_transactions"
    AUDIT_LOG = "audit_log"


class PaymentMethod(StrEnum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    BALANCE = "balance"
    CREDIT = "credit"  # on account, settled later

    @property
    def draws_on_account(self) -> bool:
        return self in {PaymentMethod.BALANCE, PaymentMethod.CREDIT}


class LedgerDirection(StrEnum):
    CREDIT = "credit"
    DEBIT = "debit"


class LedgerEntryKind(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PURCHASE = "purchase"
    REFUND = "refund"

    @property
    def direction(self) -> LedgerDirection:
        if self in {LedgerEntryKind.DEPOSIT, LedgerEntryKind.REFUND}:
            return LedgerDirection.CREDIT
        return LedgerDirection.DEBIT


class EntityType(StrEnum):
    """Discriminator for audit entries."""

    MENU_ITEM = "menu_item"
    CUSTOMER = "customer"
    SALE = "sale"


class AuditAction(StrEnum):
    MENU_ITEM_CREATED = "menu_item_created"
    CUSTOMER_CREATED = "customer_created"
    SALE_CONFIRMED = "sale_confirmed"
    SALE_REFUNDED = "sale_refunded"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
