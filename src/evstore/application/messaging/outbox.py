"""Application messaging – transactional outbox for committed events."""

from __future__ import annotations

import abc
import dataclasses
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from evstore.application.event_sourcing.record import EventRecord
from evstore.application.messaging.bus import DomainEventBus
from evstore.observability.logging import get_logger

logger = get_logger(__name__)


class OutboxStatus(str, Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    FAILED = "FAILED"


@dataclasses.dataclass
class OutboxRecord:
    """One event waiting to be published, stored alongside the event append."""

    id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    aggregate_id: str = ""
    aggregate_type: str = ""
    event_type: str = ""
    payload: dict[str, Any] = dataclasses.field(default_factory=dict)
    status: OutboxStatus = OutboxStatus.PENDING
    created_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    dispatched_at: datetime | None = None
    retry_count: int = 0
    last_error: str | None = None

    @classmethod
    def from_event(cls, event: EventRecord, aggregate_type: str = "") -> "OutboxRecord":
        return cls(
            aggregate_id=event.aggregate_id,
            aggregate_type=aggregate_type,
            event_type=event.event_type,
            payload=event.to_dict(),
        )

    def to_event(self) -> EventRecord:
        return EventRecord.from_dict(self.payload)


class OutboxRepository(abc.ABC):
    """Port: persistence for outbox records.

    ``save`` accepts the caller's session so the records commit atomically
    with the events they describe. Implementations that have no session
    concept ignore it.
    """

    @abc.abstractmethod
    async def save(self, records: Sequence[OutboxRecord], session: Any = None) -> None: ...

    @abc.abstractmethod
    async def get_pending(self, limit: int = 100) -> list[OutboxRecord]:
        """Return up to *limit* pending records, oldest first."""

    @abc.abstractmethod
    async def mark_dispatched(self, record_id: str) -> None: ...

    @abc.abstractmethod
    async def mark_failed(self, record_id: str, error: str) -> None: ...


class InMemoryOutboxRepository(OutboxRepository):
    """Dict-backed outbox repository for tests."""

    def __init__(self, max_retries: int = 5) -> None:
        self._records: dict[str, OutboxRecord] = {}
        self._max_retries = max_retries

    async def save(self, records: Sequence[OutboxRecord], session: Any = None) -> None:  # noqa: ARG002
        for record in records:
            self._records[record.id] = record

    async def get_pending(self, limit: int = 100) -> list[OutboxRecord]:
        pending = [r for r in self._records.values() if r.status == OutboxStatus.PENDING]
        pending.sort(key=lambda r: r.created_at)
        return pending[:limit]

    async def mark_dispatched(self, record_id: str) -> None:
        if record_id in self._records:
            self._records[record_id] = dataclasses.replace(
                self._records[record_id],
                status=OutboxStatus.DISPATCHED,
                dispatched_at=datetime.now(UTC),
            )

    async def mark_failed(self, record_id: str, error: str) -> None:
        if record_id in self._records:
            r = self._records[record_id]
            retry_count = r.retry_count + 1
            status = OutboxStatus.FAILED if retry_count >= self._max_retries else OutboxStatus.PENDING
            self._records[record_id] = dataclasses.replace(
                r, status=status, retry_count=retry_count, last_error=error
            )

    def all_records(self) -> list[OutboxRecord]:
        return list(self._records.values())


class OutboxRelay:
    """Reads pending outbox records and publishes them on the bus.

    Delivery is at-least-once: a crash between publish and
    ``mark_dispatched`` publishes the record again on the next run, so
    handlers should be idempotent on ``event_id``.
    """

    def __init__(self, outbox: OutboxRepository, bus: DomainEventBus) -> None:
        self._outbox = outbox
        self._bus = bus

    async def dispatch_pending(self, limit: int = 100) -> int:
        """Publish up to *limit* pending records; return how many succeeded."""
        dispatched = 0
        for record in await self._outbox.get_pending(limit):
            try:
                await self._bus.publish(record.to_event())
            except Exception as exc:
                logger.warning(
                    "outbox.dispatch_failed",
                    record_id=record.id,
                    event_type=record.event_type,
                    error=str(exc),
                )
                await self._outbox.mark_failed(record.id, str(exc))
                continue
            await self._outbox.mark_dispatched(record.id)
            dispatched += 1
        if dispatched:
            logger.debug("outbox.dispatched", count=dispatched)
        return dispatched


__all__ = [
    "InMemoryOutboxRepository",
    "OutboxRecord",
    "OutboxRelay",
    "OutboxRepository",
    "OutboxStatus",
]
