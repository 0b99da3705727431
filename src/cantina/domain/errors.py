"""Business-level failures surfaced to callers of the point of sale."""

from __future__ import annotations

from cantina.domain.commit.errors import ConditionFailedError


class PointOfSaleError(Exception):
    """Base class for rejected point-of-sale requests."""


class RecordNotFoundError(PointOfSaleError, LookupError):
    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"No record {key!r} in {collection}")
        self.collection = collection
        self.key = key


class InvalidRequestError(PointOfSaleError, ValueError):
    """The request is malformed and can never succeed as given."""


class OrderTooLargeError(InvalidRequestError):
    def __init__(self, mutation_count: int, ceiling: int, max_lines: int) -> None:
        super().__init__(
            f"Order needs {mutation_count} changes but one commit allows {ceiling}; "
            f"split it into orders of at most {max_lines} distinct items"
        )
        self.mutation_count = mutation_count
        self.ceiling = ceiling
        self.max_lines = max_lines


class StockUnavailableError(ConditionFailedError):
    default_message = "Stock no longer available"

    def __init__(self, menu_item_id: str, requested: int, available: int | None) -> None:
        super().__init__(
            f"{self.default_message} for {menu_item_id}: "
            f"requested {requested}, available {available}"
        )
        self.menu_item_id = menu_item_id
        self.requested = requested
        self.available = available


class InsufficientBalanceError(ConditionFailedError):
    default_message = "Insufficient balance"

    def __init__(self, customer_id: str, amount: int, available: int) -> None:
        super().__init__(
            f"{self.default_message} for customer {customer_id}: "
            f"needs {amount}, available {available}"
        )
        self.customer_id = customer_id
        self.amount = amount
        self.available = available


class AlreadyRefundedError(ConditionFailedError):
    default_message = "Sale already refunded"

    def __init__(self, sale_id: str) -> None:
        super().__init__(f"Sale {sale_id} already refunded")
        self.sale_id = sale_id


class ConcurrencyConflictError(ConditionFailedError):
    default_message = "Concurrent changes kept conflicting; try again"

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(f"{operation} still conflicting after {attempts} attempt(s)")
        self.operation = operation
        self.attempts = attempts
