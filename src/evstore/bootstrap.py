"""Bootstrap – build the event store and its collaborators from settings.

Example::

    settings = load_event_store_settings()
    runtime = build_event_store(settings)
    await create_schema(runtime.session_factory.engine)
    await runtime.event_store.save_events(...)
    ...
    await runtime.close()
"""
from __future__ import annotations

import dataclasses
from typing import Any

from evstore.adapters.redis import RedisEventCache
from evstore.adapters.sqlalchemy import (
    SQLAlchemyEventStore,
    SQLAlchemySnapshotStore,
    SqlAlchemyOutboxRepository,
    SqlAlchemySessionFactory,
    create_schema,
)
from evstore.application.cache import EventCache, InMemoryEventCache
from evstore.application.event_sourcing import SnapshotPolicy
from evstore.application.messaging import InProcessEventBus, OutboxRelay
from evstore.config import EventStoreSettings
from evstore.observability.logging import JsonLoggerFactory, get_logger
from evstore.tenancy import TenantRepository

logger = get_logger(__name__)


@dataclasses.dataclass
class EventStoreRuntime:
    """Wired collaborators; close it on shutdown."""

    settings: EventStoreSettings
    session_factory: SqlAlchemySessionFactory
    cache: EventCache
    event_store: SQLAlchemyEventStore
    snapshot_store: SQLAlchemySnapshotStore
    snapshot_policy: SnapshotPolicy
    outbox: SqlAlchemyOutboxRepository
    event_bus: InProcessEventBus
    relay: OutboxRelay

    def tenant_repository(self, use_outbox: bool = True) -> TenantRepository:
        """A :class:`TenantRepository` sharing this runtime's stores.

        With ``use_outbox`` events go through the outbox and reach the bus
        when :attr:`relay` dispatches them; otherwise they are published
        directly after commit.
        """
        return TenantRepository(
            self.session_factory,
            self.event_store,
            outbox=self.outbox if use_outbox else None,
            event_bus=self.event_bus,
            snapshot_store=self.snapshot_store,
            snapshot_policy=self.snapshot_policy,
        )

    async def close(self) -> None:
        if isinstance(self.cache, RedisEventCache):
            await self.cache.close()
        await self.session_factory.dispose()


def build_cache(settings: EventStoreSettings) -> EventCache:
    """Redis when ``redis_url`` is set, in-process otherwise."""
    if settings.redis_url:
        return RedisEventCache(settings.redis_url, default_namespace=settings.cache_namespace)
    return InMemoryEventCache(default_namespace=settings.cache_namespace)


def build_event_store(
    settings: EventStoreSettings,
    configure_logging: bool = True,
    **engine_kwargs: Any,
) -> EventStoreRuntime:
    """Create engine, cache, stores, outbox and bus from *settings*."""
    if configure_logging:
        JsonLoggerFactory.configure(level=settings.log_level, json_output=settings.log_json)

    session_factory = SqlAlchemySessionFactory(
        settings.database_url, echo=settings.echo_sql, **engine_kwargs
    )
    cache = build_cache(settings)
    event_store = SQLAlchemyEventStore(
        session_factory,
        cache,
        cache_namespace=settings.cache_namespace,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    outbox = SqlAlchemyOutboxRepository(session_factory)
    bus = InProcessEventBus()
    runtime = EventStoreRuntime(
        settings=settings,
        session_factory=session_factory,
        cache=cache,
        event_store=event_store,
        snapshot_store=SQLAlchemySnapshotStore(
            session_factory, retain_count=settings.snapshot_retain_count
        ),
        snapshot_policy=SnapshotPolicy(
            interval=settings.snapshot_interval,
            retain_count=settings.snapshot_retain_count,
        ),
        outbox=outbox,
        event_bus=bus,
        relay=OutboxRelay(outbox, bus),
    )
    logger.info(
        "bootstrap.event_store_ready",
        cache=type(cache).__name__,
        cache_namespace=settings.cache_namespace,
    )
    return runtime


__all__ = ["EventStoreRuntime", "build_cache", "build_event_store", "create_schema"]
