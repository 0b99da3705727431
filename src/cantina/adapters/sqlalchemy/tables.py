"""SQLAlchemy Core tables backing the record collections."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from cantina.domain.model.enums import Collection

if TYPE_CHECKING:
    from collections.abc import Mapping

ID_LENGTH: Final[int] = 36

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


menu_items_table = Table(
    Collection.MENU_ITEMS.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("event_id", String(ID_LENGTH), nullable=False, index=True),
    Column("description", String(255), nullable=False),
    Column("price", Integer, nullable=False),
    Column("stock", Integer, nullable=True),  # NULL: unlimited
    Column("sold_count", Integer, nullable=False, default=0),
    Column("version", Integer, nullable=False),
)

customers_table = Table(
    Collection.CUSTOMERS.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("credit_limit", Integer, nullable=False),
    Column("balance", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("deleted_at", UTCDateTime(), nullable=True),
    Column("version", Integer, nullable=False),
)

sales_table = Table(
    Collection.SALES.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("event_id", String(ID_LENGTH), nullable=False, index=True),
    Column("order_id", String(ID_LENGTH), nullable=False),
    Column("items", JSON, nullable=False),
    Column("payments", JSON, nullable=False),
    Column("total", Integer, nullable=False),
    Column("customer_id", String(ID_LENGTH), nullable=True, index=True),
    Column("is_paid", Boolean, nullable=False),
    Column("is_refunded", Boolean, nullable=False, default=False),
    Column("refund_id", String(ID_LENGTH), nullable=True),
    Column("refund_reason", Text, nullable=True),
    Column("refunded_at", UTCDateTime(), nullable=True),
    Column("refunded_by", String(255), nullable=True),
    Column("created_by", String(255), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("year_month", String(7), nullable=True, index=True),
    Column("version", Integer, nullable=False),
)

customer_transactions_table = Table(
    Collection.CUSTOMER_TRANSACTIONS.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("customer_id", String(ID_LENGTH), nullable=False, index=True),
    Column("kind", String(16), nullable=False),
    Column("direction", String(8), nullable=False),
    Column("amount", Integer, nullable=False),
    Column("related_sale_id", String(ID_LENGTH), nullable=True),
    Column("payment_method", String(16), nullable=True),
    Column("description", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("created_by", String(255), nullable=False),
)

audit_log_table = Table(
    Collection.AUDIT_LOG.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("entity_type", String(32), nullable=False),
    Column("entity_id", String(ID_LENGTH), nullable=False, index=True),
    Column("action", String(32), nullable=False),
    Column("user_id", String(255), nullable=False),
    Column("details", JSON, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

TABLES_BY_COLLECTION: Final[Mapping[str, Table]] = {
    Collection.MENU_ITEMS: menu_items_table,
    Collection.CUSTOMERS: customers_table,
    Collection.SALES: sales_table,
    Collection.CUSTOMER_TRANSACTIONS: customer_transactions_table,
    Collection.AUDIT_LOG: audit_log_table,
}
