"""Menu item registration and stock counter mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cantina.domain.commit.conditions import any_of, ge, is_null
from cantina.domain.commit.mutations import Increment, Mutation, versioned_update
from cantina.domain.errors import InvalidRequestError
from cantina.domain.model.base import new_id, utcnow
from cantina.domain.model.catalog import UNLIMITED_STOCK, MenuItem
from cantina.domain.model.enums import AuditAction, Collection, EntityType

from .common import Assembled, audit_mutation, require_positive

if TYPE_CHECKING:
    from datetime import datetime


def stock_decrement(item: MenuItem, quantity: int) -> Mutation:
    """Take ``quantity`` units, unless the stored stock has fallen below it."""

    return versioned_update(
        Collection.MENU_ITEMS,
        item.id,
        Increment("stock", -quantity),
        Increment("sold_count", quantity),
        expected_version=item.version,
        condition=any_of(is_null("stock"), ge("stock", quantity)),
    )


def stock_restore(item: MenuItem, quantity: int) -> Mutation:
    return versioned_update(
        Collection.MENU_ITEMS,
        item.id,
        Increment("stock", quantity),
        Increment("sold_count", -quantity),
        expected_version=item.version,
    )


def assemble_menu_item_registration(
    *,
    event_id: str,
    description: str,
    price: int,
    created_by: str,
    stock: int | None = UNLIMITED_STOCK,
    item_id: str | None = None,
    now: datetime | None = None,
) -> Assembled[MenuItem]:
    description = description.strip()
    if not description:
        raise InvalidRequestError("Menu item description must not be empty")
    require_positive(price, "Price")
    if stock is not UNLIMITED_STOCK and stock < 0:
        raise InvalidRequestError(f"Stock must not be negative, got {stock}")

    item = MenuItem(
        id=item_id or new_id(),
        event_id=event_id,
        description=description,
        price=price,
        stock=stock,
    )
    mutations = (
        Mutation.create(Collection.MENU_ITEMS, item.id, item.to_record()),
        audit_mutation(
            EntityType.MENU_ITEM,
            item.id,
            AuditAction.MENU_ITEM_CREATED,
            user_id=created_by,
            at=now or utcnow(),
            details={"description": description, "price": price, "stock": stock},
        ),
    )
    return Assembled(item, mutations)
