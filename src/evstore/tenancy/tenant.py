"""Tenancy – Tenant aggregate and its domain events."""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

from evstore.application.event_sourcing.aggregate import EventSourcedAggregate
from evstore.kernel.ddd.domain_event import DomainEvent
from evstore.kernel.errors import InvariantViolationError, ValidationError
from evstore.kernel.types.ids import EntityId

MAX_NAME_LENGTH = 100


class TenantType(str, Enum):
    ENTERPRISE = "ENTERPRISE"
    COMMUNITY = "COMMUNITY"
    TEAM = "TEAM"
    PERSONAL = "PERSONAL"


class TenantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


@dataclasses.dataclass(frozen=True, kw_only=True)
class TenantCreated(DomainEvent):
    name: str
    type: TenantType
    platform_id: str


@dataclasses.dataclass(frozen=True, kw_only=True)
class TenantRenamed(DomainEvent):
    name: str
    previous_name: str


@dataclasses.dataclass(frozen=True, kw_only=True)
class TenantDeleted(DomainEvent):
    deleted_by: str
    reason: str | None = None


def _normalise_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(
            "Tenant name must not be empty",
            errors=[{"field": "name", "reason": "empty"}],
        )
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Tenant name must be at most {MAX_NAME_LENGTH} characters",
            errors=[{"field": "name", "reason": "too long", "length": len(cleaned)}],
        )
    return cleaned


class Tenant(EventSourcedAggregate):
    """A customer organisation on a platform.

    State changes only through events: :meth:`create`, :meth:`rename` and
    :meth:`delete` raise them, replay applies them. Deletion is soft; a
    deleted tenant rejects further changes.
    """

    def __init__(self, id: EntityId) -> None:  # noqa: A002
        super().__init__(id)
        self.name = ""
        self.type = TenantType.ENTERPRISE
        self.platform_id = ""
        self.status = TenantStatus.ACTIVE

    @classmethod
    def create(
        cls,
        platform_id: str,
        name: str,
        type: TenantType = TenantType.ENTERPRISE,  # noqa: A002
        tenant_id: EntityId | None = None,
    ) -> "Tenant":
        if not platform_id:
            raise ValidationError(
                "Tenant must belong to a platform",
                errors=[{"field": "platform_id", "reason": "empty"}],
            )
        tenant = cls(tenant_id or EntityId.generate())
        tenant._raise_event(
            TenantCreated(name=_normalise_name(name), type=TenantType(type), platform_id=platform_id)
        )
        return tenant

    @property
    def is_deleted(self) -> bool:
        return self.status is TenantStatus.DELETED

    def rename(self, name: str) -> None:
        self._ensure_active("rename")
        new_name = _normalise_name(name)
        if new_name == self.name:
            return
        self._raise_event(TenantRenamed(name=new_name, previous_name=self.name))

    def delete(self, deleted_by: str, reason: str | None = None) -> None:
        self._ensure_active("delete")
        self._raise_event(TenantDeleted(deleted_by=deleted_by, reason=reason))

    def _ensure_active(self, action: str) -> None:
        if self.is_deleted:
            raise InvariantViolationError(f"Cannot {action} deleted tenant '{self.id}'")

    def _apply(self, event_type: str, data: dict[str, Any]) -> None:
        if event_type == "TenantCreated":
            self.name = data["name"]
            self.type = TenantType(data["type"])
            self.platform_id = data["platform_id"]
            self.status = TenantStatus.ACTIVE
        elif event_type == "TenantRenamed":
            self.name = data["name"]
        elif event_type == "TenantDeleted":
            self.status = TenantStatus.DELETED

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "platform_id": self.platform_id,
            "status": self.status.value,
        }

    def restore_snapshot(self, state: dict[str, Any], version: int) -> None:
        self.name = state["name"]
        self.type = TenantType(state["type"])
        self.platform_id = state["platform_id"]
        self.status = TenantStatus(state["status"])
        self._version = version


__all__ = [
    "MAX_NAME_LENGTH",
    "Tenant",
    "TenantCreated",
    "TenantDeleted",
    "TenantRenamed",
    "TenantStatus",
    "TenantType",
]
