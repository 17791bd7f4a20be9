"""Application event sourcing – event store port, aggregates, snapshots, repository."""
from evstore.application.event_sourcing.aggregate import EventSourcedAggregate
from evstore.application.event_sourcing.record import EventRecord
from evstore.application.event_sourcing.repository import EventSourcedRepository
from evstore.application.event_sourcing.retry import retry_on_conflict
from evstore.application.event_sourcing.snapshot import (
    InMemorySnapshotStore,
    SnapshotPolicy,
    SnapshotRecord,
    SnapshotStore,
)
from evstore.application.event_sourcing.stats import EventStoreStats, RunningStats, compute_stats
from evstore.application.event_sourcing.store import (
    EventStore,
    InMemoryEventStore,
    in_range,
    validate_batch,
)

__all__ = [
    "EventRecord",
    "EventSourcedAggregate",
    "EventSourcedRepository",
    "EventStore",
    "EventStoreStats",
    "InMemoryEventStore",
    "InMemorySnapshotStore",
    "RunningStats",
    "SnapshotPolicy",
    "SnapshotRecord",
    "SnapshotStore",
    "compute_stats",
    "in_range",
    "retry_on_conflict",
    "validate_batch",
]
