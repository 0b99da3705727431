"""Menu items sold at an event."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .base import INITIAL_VERSION

if TYPE_CHECKING:
    from cantina.domain.commit.mutations import Record

# A null stock counter means the item never runs out.
UNLIMITED_STOCK: Final[None] = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MenuItem:
    id: str
    event_id: str
    description: str
    price: int
    stock: int | None = UNLIMITED_STOCK
    sold_count: int = 0
    version: int = INITIAL_VERSION

    @property
    def is_unlimited(self) -> bool:
        return self.stock is UNLIMITED_STOCK

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "sold_count": self.sold_count,
            "version": self.version,
        }

    @classmethod
    def from_record(cls, record: Record) -> MenuItem:
        return cls(
            id=record["id"],
            event_id=record["event_id"],
            description=record["description"],
            price=record["price"],
            stock=record.get("stock"),
            sold_count=record.get("sold_count", 0),
            version=record["version"],
        )
