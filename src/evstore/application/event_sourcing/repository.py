"""Application event sourcing – EventSourcedRepository."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from evstore.application.event_sourcing.aggregate import EventSourcedAggregate
from evstore.application.event_sourcing.record import EventRecord
from evstore.application.event_sourcing.snapshot import SnapshotPolicy, SnapshotRecord, SnapshotStore
from evstore.application.event_sourcing.store import EventStore
from evstore.observability.correlation import CorrelationContext, RequestContext
from evstore.observability.logging import get_logger

if TYPE_CHECKING:
    from evstore.application.messaging.bus import DomainEventBus

T = TypeVar("T", bound=EventSourcedAggregate)

logger = get_logger(__name__)


class EventSourcedRepository(Generic[T], abc.ABC):
    """Generic repository for event-sourced aggregates.

    Subclasses implement :meth:`_create_empty`.

    Example::

        class CounterRepository(EventSourcedRepository[Counter]):
            def _create_empty(self, aggregate_id: str) -> Counter:
                return Counter(EntityId(aggregate_id))

        repo = CounterRepository(store, snapshot_store=snapshots, event_bus=bus)
        counter = await repo.load(counter_id)
        counter.increment(5)
        await repo.save(counter)

    ``save`` stamps every record with the ambient :class:`RequestContext`
    (tenant, correlation and causation ids). A stale aggregate surfaces as
    :class:`~evstore.kernel.errors.ConcurrencyConflictError`; wrap the whole
    load-mutate-save sequence in :func:`retry_on_conflict` to retry it.
    """

    def __init__(
        self,
        store: EventStore,
        *,
        snapshot_store: SnapshotStore | None = None,
        snapshot_policy: SnapshotPolicy | None = None,
        event_bus: "DomainEventBus | None" = None,
        context_provider: Callable[[], RequestContext | None] = CorrelationContext.get,
        metadata_factory: Callable[[T], dict[str, Any]] | None = None,
    ) -> None:
        self._store = store
        self._snapshot_store = snapshot_store
        self._snapshot_policy = snapshot_policy or SnapshotPolicy()
        self._event_bus = event_bus
        self._context_provider = context_provider
        self._metadata_factory = metadata_factory or (lambda _: {})

    @abc.abstractmethod
    def _create_empty(self, aggregate_id: str) -> T:
        """Return a blank aggregate instance with *aggregate_id*."""

    async def load(self, aggregate_id: str) -> T | None:
        """Rebuild the aggregate from its latest snapshot plus newer events.

        Returns ``None`` when the aggregate has no events. A snapshot newer
        than the stream (left behind by :meth:`EventStore.delete_events`) is
        ignored.
        """
        aggregate = self._create_empty(aggregate_id)
        snapshot = await self._latest_snapshot(aggregate)
        if snapshot is not None:
            version = await self._store.get_aggregate_version(aggregate_id)
            if version < snapshot.version:
                logger.warning(
                    "repository.snapshot_ahead_of_stream",
                    aggregate_id=aggregate_id,
                    snapshot_version=snapshot.version,
                    version=version,
                )
                snapshot = None
        if snapshot is not None:
            aggregate.restore_snapshot(snapshot.state, snapshot.version)
            events = await self._store.get_events_from_version(aggregate_id, snapshot.version + 1)
        else:
            events = await self._store.get_events(aggregate_id)
            if not events:
                return None
        for record in events:
            aggregate.apply_stored_event(record)
        return aggregate

    async def save(self, aggregate: T) -> list[EventRecord]:
        """Append the aggregate's uncommitted events.

        After the append commits: take a snapshot when the policy asks for
        one, publish the stored records, and clear the aggregate's buffer.
        Returns the stored records (empty when nothing was pending).
        """
        records = self._to_records(aggregate)
        if not records:
            return []
        old_version = aggregate.version
        stored = await self._persist(aggregate, records)
        aggregate.mark_events_committed()
        await self._maybe_snapshot(aggregate, old_version)
        await self._dispatch(stored)
        return stored

    def _to_records(self, aggregate: T) -> list[EventRecord]:
        ctx = self._context_provider()
        metadata = self._metadata_factory(aggregate)
        aggregate_id = str(aggregate.id)
        return [
            EventRecord.from_domain_event(
                aggregate_id,
                event,
                tenant_id=self._tenant_id_for(aggregate, ctx),
                correlation_id=ctx.correlation_id if ctx else None,
                causation_id=ctx.causation_id if ctx else None,
                metadata=metadata,
            )
            for event in aggregate.uncommitted_events
        ]

    def _tenant_id_for(self, aggregate: T, ctx: RequestContext | None) -> str | None:  # noqa: ARG002
        return ctx.tenant_id if ctx else None

    async def _persist(self, aggregate: T, records: Sequence[EventRecord]) -> list[EventRecord]:
        return await self._store.save_events(
            str(aggregate.id), records, expected_version=aggregate.version
        )

    async def _latest_snapshot(self, aggregate: T) -> SnapshotRecord | None:
        if self._snapshot_store is None or not aggregate.supports_snapshots():
            return None
        return await self._snapshot_store.get_latest(str(aggregate.id))

    async def _maybe_snapshot(self, aggregate: T, old_version: int) -> None:
        if self._snapshot_store is None or not aggregate.supports_snapshots():
            return
        if not self._snapshot_policy.should_snapshot(old_version, aggregate.version):
            return
        ctx = self._context_provider()
        snapshot = SnapshotRecord(
            aggregate_id=str(aggregate.id),
            aggregate_type=aggregate.aggregate_type(),
            version=aggregate.version,
            state=aggregate.to_snapshot(),
            tenant_id=self._tenant_id_for(aggregate, ctx),
        )
        try:
            await self._snapshot_store.save_snapshot(snapshot)
        except Exception as exc:
            # events are committed; a missing snapshot only costs replay time
            logger.warning(
                "repository.snapshot_failed",
                aggregate_id=snapshot.aggregate_id,
                version=snapshot.version,
                error=str(exc),
            )
            return
        logger.debug(
            "repository.snapshot_taken",
            aggregate_id=snapshot.aggregate_id,
            version=snapshot.version,
        )

    async def _dispatch(self, stored: Sequence[EventRecord]) -> None:
        """Publish committed records; failures are logged, never raised."""
        if self._event_bus is None or not stored:
            return
        try:
            await self._event_bus.publish_all(stored)
        except Exception as exc:
            logger.error(
                "repository.publish_failed",
                aggregate_id=stored[0].aggregate_id,
                event_count=len(stored),
                error=str(exc),
            )


__all__ = ["EventSourcedRepository"]
