from __future__ import annotations

import pytest

from cantina.domain.assemblers import (
    AccountMovement,
    assemble_customer_registration,
    assemble_deposit,
    assemble_menu_item_registration,
    assemble_withdrawal,
)
from cantina.domain.errors import InvalidRequestError
from cantina.domain.model import Collection, LedgerDirection, PaymentMethod
from tests.helpers.pos import CASHIER, EVENT_ID, FIXED_NOW, make_customer


def test_deposit_credits_balance_and_writes_ledger() -> None:
    customer = make_customer(balance=100)
    movement = AccountMovement(customer_id=customer.id, amount=250, created_by=CASHIER)

    assembled = assemble_deposit(movement, customer=customer, now=FIXED_NOW)

    assert [m.collection for m in assembled.mutations] == [
        Collection.CUSTOMERS,
        Collection.CUSTOMER_TRANSACTIONS,
        Collection.AUDIT_LOG,
    ]
    assert assembled.entity.id == movement.entry_id
    assert assembled.entity.direction is LedgerDirection.CREDIT
    assert assembled.entity.signed_amount == 250


def test_withdrawal_cannot_take_balance_below_zero() -> None:
    customer = make_customer(balance=100, credit_limit=5_000)
    movement = AccountMovement(customer_id=customer.id, amount=150, created_by=CASHIER)

    assembled = assemble_withdrawal(movement, customer=customer)

    guard = assembled.mutations[0].condition
    assert guard is not None
    assert not guard.evaluate(customer.to_record())
    assert guard.evaluate({**customer.to_record(), "balance": 150})
    assert assembled.entity.signed_amount == -150


@pytest.mark.parametrize("method", [PaymentMethod.BALANCE, PaymentMethod.CREDIT])
def test_movements_cannot_be_funded_from_the_account(method: PaymentMethod) -> None:
    customer = make_customer()
    movement = AccountMovement(
        customer_id=customer.id, amount=10, created_by=CASHIER, payment_method=method
    )

    with pytest.raises(InvalidRequestError):
        assemble_deposit(movement, customer=customer)


def test_movement_amount_must_be_positive() -> None:
    customer = make_customer()

    with pytest.raises(InvalidRequestError, match="positive"):
        assemble_deposit(
            AccountMovement(customer_id=customer.id, amount=0, created_by=CASHIER),
            customer=customer,
        )


def test_customer_registration_records_opening_deposit() -> None:
    assembled = assemble_customer_registration(
        name="  Bea ", created_by=CASHIER, credit_limit=0, opening_deposit=500, now=FIXED_NOW
    )

    customer = assembled.entity
    assert customer.name == "Bea"
    assert customer.balance == 500
    assert [m.collection for m in assembled.mutations] == [
        Collection.CUSTOMERS,
        Collection.CUSTOMER_TRANSACTIONS,
        Collection.AUDIT_LOG,
    ]
    ledger = assembled.mutations[1].record or {}
    assert ledger["kind"] == "deposit"
    assert ledger["amount"] == 500


def test_customer_registration_validates_input() -> None:
    with pytest.raises(InvalidRequestError):
        assemble_customer_registration(name=" ", created_by=CASHIER)
    with pytest.raises(InvalidRequestError):
        assemble_customer_registration(name="Bea", created_by=CASHIER, credit_limit=-1)


def test_menu_item_registration() -> None:
    assembled = assemble_menu_item_registration(
        event_id=EVENT_ID, description="Tea", price=120, created_by=CASHIER, stock=None
    )

    assert assembled.entity.is_unlimited
    assert assembled.mutations[0].record == assembled.entity.to_record()

    with pytest.raises(InvalidRequestError):
        assemble_menu_item_registration(
            event_id=EVENT_ID, description="Tea", price=120, created_by=CASHIER, stock=-1
        )
