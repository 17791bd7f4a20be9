"""Application event sourcing – store statistics."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from datetime import datetime

from evstore.application.event_sourcing.record import EventRecord


@dataclasses.dataclass(frozen=True)
class EventStoreStats:
    """Point-in-time statistics over the event table.

    ``oldest_event`` / ``newest_event`` are ``None`` for an empty store.
    Events without a tenant are not counted in ``events_by_tenant``.
    """

    total_events: int = 0
    total_aggregates: int = 0
    events_by_type: dict[str, int] = dataclasses.field(default_factory=dict)
    events_by_tenant: dict[str, int] = dataclasses.field(default_factory=dict)
    oldest_event: datetime | None = None
    newest_event: datetime | None = None

    @property
    def average_events_per_aggregate(self) -> float:
        if self.total_aggregates == 0:
            return 0.0
        return self.total_events / self.total_aggregates


class RunningStats:
    """Process-local counters updated on every successful append.

    Only an estimate: they start at zero on every restart, never see writes
    made by other processes, and are not decremented by deletes. Use
    ``EventStore.get_stats()`` for the authoritative figures.
    """

    def __init__(self) -> None:
        self._total = 0
        self._aggregates: set[str] = set()
        self._by_type: dict[str, int] = {}
        self._by_tenant: dict[str, int] = {}
        self._oldest: datetime | None = None
        self._newest: datetime | None = None

    def record(self, events: Iterable[EventRecord]) -> None:
        for event in events:
            self._total += 1
            self._aggregates.add(event.aggregate_id)
            self._by_type[event.event_type] = self._by_type.get(event.event_type, 0) + 1
            if event.tenant_id is not None:
                self._by_tenant[event.tenant_id] = self._by_tenant.get(event.tenant_id, 0) + 1
            if self._oldest is None or event.occurred_at < self._oldest:
                self._oldest = event.occurred_at
            if self._newest is None or event.occurred_at > self._newest:
                self._newest = event.occurred_at

    def snapshot(self) -> EventStoreStats:
        return EventStoreStats(
            total_events=self._total,
            total_aggregates=len(self._aggregates),
            events_by_type=dict(self._by_type),
            events_by_tenant=dict(self._by_tenant),
            oldest_event=self._oldest,
            newest_event=self._newest,
        )


def compute_stats(events: Iterable[EventRecord], total_aggregates: int) -> EventStoreStats:
    """Build :class:`EventStoreStats` by scanning *events*."""
    running = RunningStats()
    running.record(events)
    snap = running.snapshot()
    return dataclasses.replace(snap, total_aggregates=total_aggregates)


__all__ = ["EventStoreStats", "RunningStats", "compute_stats"]
