"""Application event sourcing – EventRecord."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from typing import Any

from evstore.kernel.ddd.domain_event import DomainEvent
from evstore.kernel.errors import SerializationError


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclasses.dataclass(frozen=True)
class EventRecord:
    """An event as appended to, and read back from, the event store.

    ``version`` is assigned by the store: callers leave it at ``0`` and the
    store stamps ``expected_version + offset`` on each record of a batch.
    ``occurred_at`` is normalised to UTC.
    """

    event_id: str
    aggregate_id: str
    event_type: str
    event_data: dict[str, Any] = dataclasses.field(default_factory=dict)
    event_metadata: dict[str, Any] = dataclasses.field(default_factory=dict)
    version: int = 0
    occurred_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    tenant_id: str | None = None
    correlation_id: str | None = None
    causation_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "occurred_at", as_utc(self.occurred_at))

    def with_version(self, version: int) -> "EventRecord":
        return dataclasses.replace(self, version=version)

    @classmethod
    def from_domain_event(
        cls,
        aggregate_id: str,
        event: DomainEvent,
        *,
        tenant_id: str | None = None,
        correlation_id: str | None = None,
        causation_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> "EventRecord":
        """Wrap *event* for appending to *aggregate_id*'s stream."""
        return cls(
            event_id=event.event_id,
            aggregate_id=aggregate_id,
            event_type=event.event_type,
            event_data=event.payload(),
            event_metadata=dict(metadata or {}),
            occurred_at=event.occurred_at,
            tenant_id=tenant_id,
            correlation_id=correlation_id,
            causation_id=causation_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (used by the cache codec and the outbox)."""
        return {
            "event_id": self.event_id,
            "aggregate_id": self.aggregate_id,
            "event_type": self.event_type,
            "event_data": self.event_data,
            "event_metadata": self.event_metadata,
            "version": self.version,
            "occurred_at": self.occurred_at.isoformat(),
            "tenant_id": self.tenant_id,
            "correlation_id": self.correlation_id,
            "causation_id": self.causation_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventRecord":
        try:
            return cls(
                event_id=data["event_id"],
                aggregate_id=data["aggregate_id"],
                event_type=data["event_type"],
                event_data=data.get("event_data") or {},
                event_metadata=data.get("event_metadata") or {},
                version=int(data["version"]),
                occurred_at=datetime.fromisoformat(data["occurred_at"]),
                tenant_id=data.get("tenant_id"),
                correlation_id=data.get("correlation_id"),
                causation_id=data.get("causation_id"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise SerializationError(
                f"Malformed event record: {exc}", payload_type="EventRecord", cause=exc
            ) from exc


__all__ = ["EventRecord", "as_utc"]
