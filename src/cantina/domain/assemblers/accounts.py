"""Customer registration, deposits, withdrawals and balance mutations.

Balance rules live in the predicates attached here, never in a read-side
check: a debit requires ``balance - amount >= -credit_limit`` on the stored
record and every movement is guarded by the customer's version stamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from cantina.domain.commit.conditions import all_of, ge, is_null
from cantina.domain.commit.mutations import Increment, Mutation, versioned_update
from cantina.domain.errors import InvalidRequestError
from cantina.domain.model.base import new_id, utcnow
from cantina.domain.model.customer import DEFAULT_CREDIT_LIMIT, Customer, LedgerEntry
from cantina.domain.model.enums import (
    AuditAction,
    Collection,
    EntityType,
    LedgerEntryKind,
    PaymentMethod,
)

from .common import Assembled, audit_mutation, ledger_mutation, require_positive

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class AccountMovement:
    """Deposit or withdrawal request; ``entry_id`` is reused across retries."""

    customer_id: str
    amount: int
    created_by: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: str | None = None
    entry_id: str = field(default_factory=new_id)


def balance_debit(customer: Customer, amount: int) -> Mutation:
    return versioned_update(
        Collection.CUSTOMERS,
        customer.id,
        Increment("balance", -amount),
        expected_version=customer.version,
        condition=all_of(
            is_null("deleted_at"),
            ge("balance", amount - customer.credit_limit),
        ),
    )


def balance_credit(customer: Customer, amount: int, *, require_active: bool = True) -> Mutation:
    return versioned_update(
        Collection.CUSTOMERS,
        customer.id,
        Increment("balance", amount),
        expected_version=customer.version,
        condition=is_null("deleted_at") if require_active else None,
    )


def _validate_movement(movement: AccountMovement, customer: Customer) -> None:
    require_positive(movement.amount, "Amount")
    if movement.payment_method.draws_on_account:
        raise InvalidRequestError(
            f"{movement.payment_method} cannot fund a movement on the same account"
        )
    if customer.id != movement.customer_id:
        raise InvalidRequestError("Customer snapshot does not match the request")
    if customer.is_deleted:
        raise InvalidRequestError(f"Customer {customer.id} is deleted")


def _movement(
    movement: AccountMovement,
    customer: Customer,
    kind: LedgerEntryKind,
    balance_mutation: Mutation,
    action: AuditAction,
    now: datetime | None,
) -> Assembled[LedgerEntry]:
    at = now or utcnow()
    entry = LedgerEntry(
        id=movement.entry_id,
        customer_id=customer.id,
        kind=kind,
        amount=movement.amount,
        payment_method=movement.payment_method,
        description=movement.description,
        created_at=at,
        created_by=movement.created_by,
    )
    mutations = (
        balance_mutation,
        ledger_mutation(entry),
        audit_mutation(
            EntityType.CUSTOMER,
            customer.id,
            action,
            user_id=movement.created_by,
            at=at,
            details={"entry_id": entry.id, "amount": entry.amount},
        ),
    )
    return Assembled(entry, mutations)


def assemble_deposit(
    movement: AccountMovement, *, customer: Customer, now: datetime | None = None
) -> Assembled[LedgerEntry]:
    _validate_movement(movement, customer)
    return _movement(
        movement,
        customer,
        LedgerEntryKind.DEPOSIT,
        balance_credit(customer, movement.amount),
        AuditAction.DEPOSIT,
        now,
    )


def assemble_withdrawal(
    movement: AccountMovement, *, customer: Customer, now: datetime | None = None
) -> Assembled[LedgerEntry]:
    """Pay out held credit; the balance may not go below zero, whatever the credit limit."""

    _validate_movement(movement, customer)
    mutation = versioned_update(
        Collection.CUSTOMERS,
        customer.id,
        Increment("balance", -movement.amount),
        expected_version=customer.version,
        condition=all_of(is_null("deleted_at"), ge("balance", movement.amount)),
    )
    return _movement(
        movement,
        customer,
        LedgerEntryKind.WITHDRAWAL,
        mutation,
        AuditAction.WITHDRAWAL,
        now,
    )


def assemble_customer_registration(
    *,
    name: str,
    created_by: str,
    credit_limit: int = DEFAULT_CREDIT_LIMIT,
    opening_deposit: int = 0,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    customer_id: str | None = None,
    now: datetime | None = None,
) -> Assembled[Customer]:
    """Create a customer, recording any opening deposit in the ledger."""

    name = name.strip()
    if not name:
        raise InvalidRequestError("Customer name must not be empty")
    if credit_limit < 0:
        raise InvalidRequestError(f"Credit limit must not be negative, got {credit_limit}")
    if opening_deposit < 0:
        raise InvalidRequestError(f"Opening deposit must not be negative, got {opening_deposit}")
    if opening_deposit and payment_method.draws_on_account:
        raise InvalidRequestError(f"{payment_method} cannot fund an opening deposit")

    at = now or utcnow()
    customer = Customer(
        id=customer_id or new_id(),
        name=name,
        credit_limit=credit_limit,
        created_at=at,
    )
    mutations: list[Mutation] = []
    if opening_deposit:
        entry = LedgerEntry(
            id=new_id(),
            customer_id=customer.id,
            kind=LedgerEntryKind.DEPOSIT,
            amount=opening_deposit,
            payment_method=payment_method,
            description="Opening deposit",
            created_at=at,
            created_by=created_by,
        )
        customer = replace(customer, balance=opening_deposit)
        mutations.append(ledger_mutation(entry))

    mutations.insert(0, Mutation.create(Collection.CUSTOMERS, customer.id, customer.to_record()))
    mutations.append(
        audit_mutation(
            EntityType.CUSTOMER,
            customer.id,
            AuditAction.CUSTOMER_CREATED,
            user_id=created_by,
            at=at,
            details={"credit_limit": credit_limit, "opening_deposit": opening_deposit},
        )
    )
    return Assembled(customer, tuple(mutations))
