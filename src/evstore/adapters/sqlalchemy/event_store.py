"""SQLAlchemy adapter – SQLAlchemyEventStore."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from evstore.adapters.sqlalchemy.schema import aggregates, events as events_table, is_unique_violation
from evstore.application.cache import DEFAULT_NAMESPACE, CacheKey, EventCache, EventListCodec
from evstore.application.event_sourcing.record import EventRecord
from evstore.application.event_sourcing.stats import EventStoreStats, RunningStats
from evstore.application.event_sourcing.store import EventStore, validate_batch
from evstore.kernel.errors import ConcurrencyConflictError, EventPersistenceError, SerializationError
from evstore.kernel.time import Clock, SystemClock
from evstore.observability.logging import get_logger

logger = get_logger(__name__)


def _row_to_record(row: Any) -> EventRecord:
    return EventRecord(
        event_id=row.event_id,
        aggregate_id=row.aggregate_id,
        event_type=row.event_type,
        event_data=row.event_data or {},
        event_metadata=row.event_metadata or {},
        version=row.version,
        occurred_at=row.occurred_at,
        tenant_id=row.tenant_id,
        correlation_id=row.correlation_id,
        causation_id=row.causation_id,
    )


def _record_to_row(record: EventRecord) -> dict[str, Any]:
    return {
        "event_id": record.event_id,
        "aggregate_id": record.aggregate_id,
        "event_type": record.event_type,
        "event_data": record.event_data,
        "event_metadata": record.event_metadata,
        "version": record.version,
        "occurred_at": record.occurred_at,
        "tenant_id": record.tenant_id,
        "correlation_id": record.correlation_id,
        "causation_id": record.causation_id,
    }


class SQLAlchemyEventStore(EventStore):
    """Relational event store with a version ledger and a read-through cache.

    Events live in the ``events`` table, one ledger row per aggregate in
    ``aggregates`` (see :mod:`evstore.adapters.sqlalchemy.schema`; call
    :func:`~evstore.adapters.sqlalchemy.schema.create_schema` once before
    use).

    An append checks the ledger, then in one transaction creates or
    compare-and-sets the ledger row and inserts the events. A writer that
    loses a race either updates zero ledger rows or trips the unique
    ``(aggregate_id, version)`` constraint; both surface as
    :class:`ConcurrencyConflictError` and nothing is written.

    The cache only holds derived data. A cached stream is served only
    while its last version matches the ledger. Cache failures are logged
    as warnings and the database is used instead.

    Parameters
    ----------
    session_factory:
        Zero-argument callable returning an :class:`AsyncSession`, e.g. a
        :class:`~evstore.adapters.sqlalchemy.session.SqlAlchemySessionFactory`.
    cache:
        Optional :class:`~evstore.application.cache.EventCache`.
    cache_namespace:
        Namespace used for every cache get, set and delete.
    cache_ttl_seconds:
        TTL of cached event lists.
    """

    def __init__(
        self,
        session_factory: Any,
        cache: EventCache | None = None,
        *,
        cache_namespace: str = DEFAULT_NAMESPACE,
        cache_ttl_seconds: int = 3600,
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._cache_namespace = cache_namespace
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock or SystemClock()
        self._running = RunningStats()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_events(
        self,
        aggregate_id: str,
        events: Sequence[EventRecord],
        expected_version: int,
    ) -> list[EventRecord]:
        validate_batch(aggregate_id, events, expected_version)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    stored = await self._append(session, aggregate_id, events, expected_version)
        except IntegrityError as exc:
            raise self._integrity_error("save_events", aggregate_id, expected_version, exc) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "event_store.append_rolled_back",
                aggregate_id=aggregate_id,
                expected_version=expected_version,
                error=str(exc),
            )
            raise EventPersistenceError("save_events", cause=exc) from exc
        await self.after_commit(aggregate_id, stored)
        return stored

    async def append_in_transaction(
        self,
        session: AsyncSession,
        aggregate_id: str,
        events: Sequence[EventRecord],
        expected_version: int,
    ) -> list[EventRecord]:
        """Append on a session whose transaction the caller owns.

        Nothing is committed here. Once the caller commits it must call
        :meth:`after_commit` with the returned records.
        """
        validate_batch(aggregate_id, events, expected_version)
        try:
            return await self._append(session, aggregate_id, events, expected_version)
        except IntegrityError as exc:
            raise self._integrity_error(
                "append_in_transaction", aggregate_id, expected_version, exc
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "event_store.append_failed",
                aggregate_id=aggregate_id,
                expected_version=expected_version,
                error=str(exc),
            )
            raise EventPersistenceError("append_in_transaction", cause=exc) from exc

    async def after_commit(self, aggregate_id: str, stored: Sequence[EventRecord]) -> None:
        """Invalidate the cached stream and count the appended events."""
        await self._invalidate(aggregate_id)
        self._running.record(stored)
        logger.info(
            "event_store.events_appended",
            aggregate_id=aggregate_id,
            count=len(stored),
            version=stored[-1].version if stored else None,
        )

    async def _append(
        self,
        session: AsyncSession,
        aggregate_id: str,
        batch: Sequence[EventRecord],
        expected_version: int,
    ) -> list[EventRecord]:
        row = (
            await session.execute(
                select(aggregates.c.version).where(aggregates.c.aggregate_id == aggregate_id)
            )
        ).first()
        actual = row.version if row is not None else 0
        if actual != expected_version:
            logger.info(
                "event_store.concurrency_conflict",
                aggregate_id=aggregate_id,
                expected_version=expected_version,
                actual_version=actual,
            )
            raise ConcurrencyConflictError(aggregate_id, expected_version, actual)

        now = self._clock.now()
        new_version = expected_version + len(batch)
        if row is None:
            await session.execute(
                insert(aggregates).values(
                    aggregate_id=aggregate_id,
                    version=new_version,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            result = await session.execute(
                update(aggregates)
                .where(aggregates.c.aggregate_id == aggregate_id)
                .where(aggregates.c.version == expected_version)
                .values(version=new_version, updated_at=now)
            )
            if result.rowcount != 1:
                logger.info(
                    "event_store.concurrency_conflict",
                    aggregate_id=aggregate_id,
                    expected_version=expected_version,
                    actual_version=None,
                )
                raise ConcurrencyConflictError(aggregate_id, expected_version, None)

        stored = [e.with_version(expected_version + i) for i, e in enumerate(batch, start=1)]
        await session.execute(insert(events_table), [_record_to_row(e) for e in stored])
        logger.debug(
            "event_store.events_written",
            aggregate_id=aggregate_id,
            from_version=expected_version + 1,
            to_version=new_version,
        )
        return stored

    def _integrity_error(
        self, operation: str, aggregate_id: str, expected_version: int, exc: IntegrityError
    ) -> ConcurrencyConflictError | EventPersistenceError:
        """Map a constraint violation raised during an append.

        Only the ledger key and the ``(aggregate_id, version)`` constraint
        mean another writer got there first. Anything else, such as an
        ``event_id`` that is already stored, is a persistence failure.
        """
        if is_unique_violation(
            exc, "uq_events_aggregate_version", "events.aggregate_id", "events.version"
        ) or is_unique_violation(exc, "pk_aggregates", "aggregates.aggregate_id"):
            logger.info(
                "event_store.concurrency_conflict",
                aggregate_id=aggregate_id,
                expected_version=expected_version,
                actual_version=None,
            )
            return ConcurrencyConflictError(aggregate_id, expected_version, None, cause=exc)
        logger.error(
            "event_store.constraint_violated",
            aggregate_id=aggregate_id,
            expected_version=expected_version,
            error=str(exc),
        )
        return EventPersistenceError(operation, cause=exc)

    async def delete_events(self, aggregate_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(events_table).where(events_table.c.aggregate_id == aggregate_id)
                    )
                    deleted = result.rowcount
                    await session.execute(
                        delete(aggregates).where(aggregates.c.aggregate_id == aggregate_id)
                    )
        except SQLAlchemyError as exc:
            logger.error("event_store.delete_rolled_back", aggregate_id=aggregate_id, error=str(exc))
            raise EventPersistenceError("delete_events", cause=exc) from exc
        await self._invalidate(aggregate_id)
        logger.info("event_store.events_deleted", aggregate_id=aggregate_id, count=deleted)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_events(self, aggregate_id: str) -> list[EventRecord]:
        key = CacheKey.for_events(aggregate_id)
        cached = await self._cache_get(key)
        if cached is not None:
            try:
                hit = EventListCodec.decode(cached)
            except SerializationError as exc:
                logger.warning("event_store.cache_corrupt", aggregate_id=aggregate_id, error=str(exc))
            else:
                # a reader may have cached its list after a newer append invalidated the key
                current = await self.get_aggregate_version(aggregate_id)
                if hit and hit[-1].version == current:
                    logger.debug("event_store.cache_hit", aggregate_id=aggregate_id, count=len(hit))
                    return hit
                logger.info(
                    "event_store.cache_stale",
                    aggregate_id=aggregate_id,
                    cached_version=hit[-1].version if hit else 0,
                    version=current,
                )
                await self._invalidate(aggregate_id)

        rows = await self._fetch(
            "get_events",
            select(events_table)
            .where(events_table.c.aggregate_id == aggregate_id)
            .order_by(events_table.c.version),
        )
        records = [_row_to_record(r) for r in rows]
        logger.debug("event_store.events_loaded", aggregate_id=aggregate_id, count=len(records))
        if records:
            await self._cache_set(key, EventListCodec.encode(records))
        return records

    async def get_events_from_version(
        self,
        aggregate_id: str,
        from_version: int,
    ) -> list[EventRecord]:
        rows = await self._fetch(
            "get_events_from_version",
            select(events_table)
            .where(events_table.c.aggregate_id == aggregate_id)
            .where(events_table.c.version >= from_version)
            .order_by(events_table.c.version),
        )
        return [_row_to_record(r) for r in rows]

    async def get_events_by_type(
        self,
        event_type: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        stmt = self._ranged(
            select(events_table).where(events_table.c.event_type == event_type), from_date, to_date
        )
        rows = await self._fetch("get_events_by_type", stmt)
        return [_row_to_record(r) for r in rows]

    async def get_events_by_tenant(
        self,
        tenant_id: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[EventRecord]:
        stmt = self._ranged(
            select(events_table).where(events_table.c.tenant_id == tenant_id), from_date, to_date
        )
        rows = await self._fetch("get_events_by_tenant", stmt)
        return [_row_to_record(r) for r in rows]

    async def get_aggregate_version(self, aggregate_id: str) -> int:
        rows = await self._fetch(
            "get_aggregate_version",
            select(aggregates.c.version).where(aggregates.c.aggregate_id == aggregate_id),
        )
        return rows[0].version if rows else 0

    async def exists(self, aggregate_id: str) -> bool:
        rows = await self._fetch(
            "exists",
            select(aggregates.c.aggregate_id).where(aggregates.c.aggregate_id == aggregate_id),
        )
        return bool(rows)

    async def get_stats(self) -> EventStoreStats:
        try:
            async with self._session_factory() as session:
                totals = (
                    await session.execute(
                        select(
                            func.count(events_table.c.event_id).label("total"),
                            func.min(events_table.c.occurred_at).label("oldest"),
                            func.max(events_table.c.occurred_at).label("newest"),
                        )
                    )
                ).one()
                total_aggregates = (
                    await session.execute(select(func.count()).select_from(aggregates))
                ).scalar_one()
                by_type = (
                    await session.execute(
                        select(events_table.c.event_type, func.count()).group_by(events_table.c.event_type)
                    )
                ).all()
                by_tenant = (
                    await session.execute(
                        select(events_table.c.tenant_id, func.count())
                        .where(events_table.c.tenant_id.is_not(None))
                        .group_by(events_table.c.tenant_id)
                    )
                ).all()
        except SQLAlchemyError as exc:
            logger.error("event_store.read_failed", operation="get_stats", error=str(exc))
            raise EventPersistenceError("get_stats", cause=exc) from exc
        return EventStoreStats(
            total_events=totals.total or 0,
            total_aggregates=total_aggregates or 0,
            events_by_type={t: n for t, n in by_type},
            events_by_tenant={t: n for t, n in by_tenant},
            oldest_event=totals.oldest,
            newest_event=totals.newest,
        )

    def local_stats(self) -> EventStoreStats:
        """Process-local running counters; an estimate, see :class:`RunningStats`."""
        return self._running.snapshot()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ranged(stmt: Any, from_date: datetime | None, to_date: datetime | None) -> Any:
        if from_date is not None:
            stmt = stmt.where(events_table.c.occurred_at >= from_date)
        if to_date is not None:
            stmt = stmt.where(events_table.c.occurred_at <= to_date)
        return stmt.order_by(events_table.c.occurred_at, events_table.c.version)

    async def _fetch(self, operation: str, stmt: Any) -> list[Any]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.all())
        except SQLAlchemyError as exc:
            logger.error("event_store.read_failed", operation=operation, error=str(exc))
            raise EventPersistenceError(operation, cause=exc) from exc

    async def _cache_get(self, key: str) -> str | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key, namespace=self._cache_namespace)
        except Exception as exc:
            logger.warning("event_store.cache_get_failed", key=key, error=str(exc))
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(
                key, value, self._cache_ttl_seconds, namespace=self._cache_namespace
            )
        except Exception as exc:
            logger.warning("event_store.cache_set_failed", key=key, error=str(exc))

    async def _invalidate(self, aggregate_id: str) -> None:
        if self._cache is None:
            return
        key = CacheKey.for_events(aggregate_id)
        try:
            await self._cache.delete(key, namespace=self._cache_namespace)
        except Exception as exc:
            logger.warning("event_store.cache_invalidate_failed", key=key, error=str(exc))


__all__ = ["SQLAlchemyEventStore"]
