"""Application event sourcing – EventStore port and InMemoryEventStore."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from datetime import datetime

from evstore.application.event_sourcing.record import EventRecord, as_utc
from evstore.application.event_sourcing.stats import EventStoreStats, RunningStats, compute_stats
from evstore.kernel.errors import ConcurrencyConflictError, EventValidationError
from evstore.observability.logging import get_logger

logger = get_logger(__name__)


def validate_batch(
    aggregate_id: str,
    events: Sequence[EventRecord],
    expected_version: int,
) -> None:
    """Reject a malformed append before any I/O.

    Raises :class:`EventValidationError` listing every problem found.
    """
    if not aggregate_id:
        raise EventValidationError("aggregate_id must not be empty")
    if expected_version < 0:
        raise EventValidationError(
            f"expected_version must be >= 0, got {expected_version}",
            errors=[{"field": "expected_version", "value": expected_version}],
        )
    if not events:
        raise EventValidationError("event batch must not be empty")

    errors: list[dict[str, object]] = []
    seen: set[str] = set()
    for index, event in enumerate(events):
        if not event.event_id:
            errors.append({"index": index, "field": "event_id", "reason": "missing"})
        elif event.event_id in seen:
            errors.append({"index": index, "field": "event_id", "reason": "duplicate in batch"})
        else:
            seen.add(event.event_id)
        if not event.event_type:
            errors.append({"index": index, "field": "event_type", "reason": "missing"})
        if event.aggregate_id != aggregate_id:
            errors.append({
                "index": index,
                "field": "aggregate_id",
                "reason": f"expected {aggregate_id!r}, got {event.aggregate_id!r}",
            })
    if errors:
        raise EventValidationError(
            f"{len(errors)} invalid event(s) in batch for aggregate '{aggregate_id}'",
            errors=errors,
        )


def in_range(
    occurred_at: datetime,
    from_date: datetime | None,
    to_date: datetime | None,
) -> bool:
    """Inclusive ``[from_date, to_date]`` check; ``None`` bounds are open."""
    if from_date is not None and occurred_at < as_utc(from_date):
        return False
    if to_date is not None and occurred_at > as_utc(to_date):
        return False
    return True


class EventStore(abc.ABC):
    """Port — durable append-only event store with a per-aggregate ledger.

    ``expected_version`` drives **optimistic concurrency control**:

    - pass ``0`` when creating a new aggregate;
    - pass the aggregate's committed version when appending to it;
    - the store raises :class:`ConcurrencyConflictError` when the ledger
      holds any other value. The caller should reload the aggregate and
      re-run the business operation, not resend the same batch.

    A batch of *M* events appended at ``expected_version=v`` receives
    versions ``v+1 .. v+M`` atomically.
    """

    @abc.abstractmethod
    async def save_events(
        self,
        aggregate_id: str,
        events: Sequence[EventRecord],
        expected_version: int,
    ) -> list[EventRecord]:
        """Append *events* and return them stamped with their versions."""

    @abc.abstractmethod
    async def get_events(self, aggregate_id: str) -> list[EventRecord]:
        """Return the aggregate's full stream in version order."""

    @abc.abstractmethod
    async def get_events_from_version(
        self,
        aggregate_id: str,
        from_version: int,
    ) -> list[EventRecord]:
        """Return events with ``version >= from_version`` in version order."""

    @abc.abstractmethod
    async def get_events_by_type(
        self,
        event_type: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        """Return events of *event_type*, ordered by ``occurred_at``."""

    @abc.abstractmethod
    async def get_events_by_tenant(
        self,
        tenant_id: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        """Return events of *tenant_id*, ordered by ``occurred_at``."""

    @abc.abstractmethod
    async def get_aggregate_version(self, aggregate_id: str) -> int:
        """Return the committed version, ``0`` for unknown aggregates."""

    @abc.abstractmethod
    async def exists(self, aggregate_id: str) -> bool: ...

    @abc.abstractmethod
    async def delete_events(self, aggregate_id: str) -> None:
        """Remove the aggregate's events and ledger entry. Irreversible."""

    @abc.abstractmethod
    async def get_stats(self) -> EventStoreStats:
        """Statistics computed from the stored events, never from counters."""


class InMemoryEventStore(EventStore):
    """In-memory :class:`EventStore` for tests and local development.

    Appends are atomic because no ``await`` happens between the version
    check and the write.
    """

    def __init__(self) -> None:
        self._streams: dict[str, list[EventRecord]] = {}
        self._ledger: dict[str, int] = {}
        self._running = RunningStats()

    async def save_events(
        self,
        aggregate_id: str,
        events: Sequence[EventRecord],
        expected_version: int,
    ) -> list[EventRecord]:
        validate_batch(aggregate_id, events, expected_version)
        actual = self._ledger.get(aggregate_id, 0)
        if actual != expected_version:
            logger.info(
                "event_store.concurrency_conflict",
                aggregate_id=aggregate_id,
                expected_version=expected_version,
                actual_version=actual,
            )
            raise ConcurrencyConflictError(aggregate_id, expected_version, actual)

        stored = [e.with_version(expected_version + i) for i, e in enumerate(events, start=1)]
        self._streams.setdefault(aggregate_id, []).extend(stored)
        self._ledger[aggregate_id] = expected_version + len(stored)
        self._running.record(stored)
        return stored

    async def get_events(self, aggregate_id: str) -> list[EventRecord]:
        return list(self._streams.get(aggregate_id, []))

    async def get_events_from_version(
        self,
        aggregate_id: str,
        from_version: int,
    ) -> list[EventRecord]:
        return [e for e in self._streams.get(aggregate_id, []) if e.version >= from_version]

    async def get_events_by_type(
        self,
        event_type: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        matches = [
            e for e in self._all()
            if e.event_type == event_type and in_range(e.occurred_at, from_date, to_date)
        ]
        return sorted(matches, key=lambda e: e.occurred_at)

    async def get_events_by_tenant(
        self,
        tenant_id: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        matches = [
            e for e in self._all()
            if e.tenant_id == tenant_id and in_range(e.occurred_at, from_date, to_date)
        ]
        return sorted(matches, key=lambda e: e.occurred_at)

    async def get_aggregate_version(self, aggregate_id: str) -> int:
        return self._ledger.get(aggregate_id, 0)

    async def exists(self, aggregate_id: str) -> bool:
        return aggregate_id in self._ledger

    async def delete_events(self, aggregate_id: str) -> None:
        self._streams.pop(aggregate_id, None)
        self._ledger.pop(aggregate_id, None)

    async def get_stats(self) -> EventStoreStats:
        return compute_stats(self._all(), total_aggregates=len(self._ledger))

    def local_stats(self) -> EventStoreStats:
        """Process-local running counters (see :class:`RunningStats`)."""
        return self._running.snapshot()

    def _all(self) -> list[EventRecord]:
        return [e for stream in self._streams.values() for e in stream]


__all__ = ["EventStore", "InMemoryEventStore", "in_range", "validate_batch"]
