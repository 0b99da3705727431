"""Audit trail entries written together with the change they record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .enums import AuditAction, EntityType

if TYPE_CHECKING:
    from datetime import datetime

    from cantina.domain.commit.mutations import Record


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditEntry:
    id: str
    entity_type: EntityType
    entity_id: str
    action: AuditAction
    user_id: str
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "entity_type": str(self.entity_type),
            "entity_id": self.entity_id,
            "action": str(self.action),
            "user_id": self.user_id,
            "details": dict(self.details),
            "created_at": self.created_at,
        }

    @classmethod
    def from_record(cls, record: Record) -> AuditEntry:
        return cls(
            id=record["id"],
            entity_type=EntityType(record["entity_type"]),
            entity_id=record["entity_id"],
            action=AuditAction(record["action"]),
            user_id=record["user_id"],
            details=dict(record.get("details") or {}),
            created_at=record["created_at"],
        )
