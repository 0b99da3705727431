"""Building blocks shared by the transaction assemblers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cantina.domain.commit.mutations import Mutation
from cantina.domain.errors import InvalidRequestError
from cantina.domain.model.audit import AuditEntry
from cantina.domain.model.base import new_id
from cantina.domain.model.enums import Collection

if TYPE_CHECKING:
    from datetime import datetime

    from cantina.domain.model.customer import LedgerEntry
    from cantina.domain.model.enums import AuditAction, EntityType


@dataclass(frozen=True, slots=True)
class Assembled[TEntity]:
    """The entity as it will look after commit, plus the mutations that produce it."""

    entity: TEntity
    mutations: tuple[Mutation, ...]


def audit_mutation(
    entity_type: EntityType,
    entity_id: str,
    action: AuditAction,
    *,
    user_id: str,
    at: datetime,
    details: dict[str, Any] | None = None,
) -> Mutation:
    entry = AuditEntry(
        id=new_id(),
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        created_at=at,
        details=details or {},
    )
    return Mutation.create(Collection.AUDIT_LOG, entry.id, entry.to_record())


def ledger_mutation(entry: LedgerEntry) -> Mutation:
    return Mutation.create(Collection.CUSTOMER_TRANSACTIONS, entry.id, entry.to_record())


def require_positive(value: int, what: str) -> None:
    if value <= 0:
        raise InvalidRequestError(f"{what} must be positive, got {value}")
