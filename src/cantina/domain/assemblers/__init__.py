"""Pure builders turning a business intent into one list of mutations."""

from __future__ import annotations

from .accounts import (
    AccountMovement,
    assemble_customer_registration,
    assemble_deposit,
    assemble_withdrawal,
    balance_credit,
    balance_debit,
)
from .catalog import assemble_menu_item_registration, stock_decrement, stock_restore
from .common import Assembled
from .refunds import AssembledRefund, RefundRequest, assemble_refund
from .sales import SaleRequest, assemble_sale_confirmation, ensure_order_fits, max_order_lines

__all__ = [
    "AccountMovement",
    "Assembled",
    "AssembledRefund",
    "RefundRequest",
    "SaleRequest",
    "assemble_customer_registration",
    "assemble_deposit",
    "assemble_menu_item_registration",
    "assemble_refund",
    "assemble_sale_confirmation",
    "assemble_withdrawal",
    "balance_credit",
    "balance_debit",
    "ensure_order_fits",
    "max_order_lines",
    "stock_decrement",
    "stock_restore",
]
