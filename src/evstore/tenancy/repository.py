"""Tenancy – TenantRepository (event store + ``tenants`` projection)."""
from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from evstore.adapters.sqlalchemy.event_store import SQLAlchemyEventStore
from evstore.adapters.sqlalchemy.schema import is_unique_violation, tenants
from evstore.application.event_sourcing.record import EventRecord
from evstore.application.event_sourcing.repository import EventSourcedRepository
from evstore.application.event_sourcing.snapshot import SnapshotPolicy, SnapshotStore
from evstore.application.messaging.bus import DomainEventBus
from evstore.application.messaging.outbox import OutboxRecord, OutboxRepository
from evstore.kernel.errors import DuplicateTenantNameError, EventPersistenceError, NotFoundError
from evstore.kernel.time import Clock, SystemClock
from evstore.kernel.types.ids import EntityId
from evstore.observability.correlation import CorrelationContext, RequestContext
from evstore.observability.logging import get_logger
from evstore.tenancy.tenant import Tenant, TenantStatus, TenantType

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class TenantSummary:
    """Row of the ``tenants`` projection."""

    id: str
    platform_id: str
    name: str
    type: TenantType
    status: TenantStatus
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "TenantSummary":
        return cls(
            id=row.id,
            platform_id=row.platform_id,
            name=row.name,
            type=TenantType(row.type),
            status=TenantStatus(row.status),
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class TenantRepository(EventSourcedRepository[Tenant]):
    """Persist :class:`Tenant` aggregates.

    The event stream is the source of truth: :meth:`find_by_id` replays it
    (from the latest snapshot when a snapshot store is configured). The
    ``tenants`` table is a projection written in the same transaction as
    the events and serves the list and lookup queries. Deleted tenants stay
    in the projection with status ``DELETED``.

    With an outbox, one outbox record per event is written in that same
    transaction and published later by an
    :class:`~evstore.application.messaging.OutboxRelay`. Without one, events
    are published on the bus after commit, best-effort.
    """

    def __init__(
        self,
        session_factory: Any,
        event_store: SQLAlchemyEventStore,
        *,
        outbox: OutboxRepository | None = None,
        event_bus: DomainEventBus | None = None,
        snapshot_store: SnapshotStore | None = None,
        snapshot_policy: SnapshotPolicy | None = None,
        context_provider: Callable[[], RequestContext | None] = CorrelationContext.get,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            event_store,
            snapshot_store=snapshot_store,
            snapshot_policy=snapshot_policy,
            event_bus=event_bus,
            context_provider=context_provider,
        )
        self._session_factory = session_factory
        self._event_store = event_store
        self._outbox = outbox
        self._clock = clock or SystemClock()

    def _create_empty(self, aggregate_id: str) -> Tenant:
        return Tenant(EntityId(aggregate_id))

    def _tenant_id_for(self, aggregate: Tenant, ctx: RequestContext | None) -> str | None:  # noqa: ARG002
        return str(aggregate.id)

    async def find_by_id(self, tenant_id: str) -> Tenant | None:
        return await self.load(tenant_id)

    async def get(self, tenant_id: str) -> Tenant:
        tenant = await self.load(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    async def find_by_name(self, platform_id: str, name: str) -> TenantSummary | None:
        rows = await self._query(
            "find_tenant_by_name",
            select(tenants).where(
                and_(
                    tenants.c.platform_id == platform_id,
                    tenants.c.name == name.strip(),
                    tenants.c.status != TenantStatus.DELETED.value,
                )
            ),
        )
        return TenantSummary.from_row(rows[0]) if rows else None

    async def list_by_platform(
        self,
        platform_id: str,
        include_deleted: bool = False,
    ) -> list[TenantSummary]:
        stmt = select(tenants).where(tenants.c.platform_id == platform_id)
        if not include_deleted:
            stmt = stmt.where(tenants.c.status != TenantStatus.DELETED.value)
        rows = await self._query("list_tenants", stmt.order_by(tenants.c.name))
        return [TenantSummary.from_row(r) for r in rows]

    async def delete(self, tenant_id: str, deleted_by: str, reason: str | None = None) -> Tenant:
        """Soft-delete the tenant: raise ``TenantDeleted`` and save."""
        tenant = await self.get(tenant_id)
        tenant.delete(deleted_by, reason)
        await self.save(tenant)
        return tenant

    async def _persist(self, aggregate: Tenant, records: Sequence[EventRecord]) -> list[EventRecord]:
        aggregate_id = str(aggregate.id)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._ensure_unique_name(session, aggregate)
                    stored = await self._event_store.append_in_transaction(
                        session, aggregate_id, records, aggregate.version
                    )
                    await self._upsert_projection(session, aggregate)
                    if self._outbox is not None:
                        await self._outbox.save(
                            [OutboxRecord.from_event(e, aggregate.aggregate_type()) for e in stored],
                            session=session,
                        )
        except IntegrityError as exc:
            # a concurrent create or rename committed the same name after our check
            if is_unique_violation(
                exc, "uq_tenants_platform_id_name_active", "tenants.platform_id", "tenants.name"
            ):
                raise DuplicateTenantNameError(aggregate.platform_id, aggregate.name) from exc
            logger.error("tenant_repository.save_rolled_back", tenant_id=aggregate_id, error=str(exc))
            raise EventPersistenceError("save_tenant", cause=exc) from exc
        except SQLAlchemyError as exc:
            logger.error("tenant_repository.save_rolled_back", tenant_id=aggregate_id, error=str(exc))
            raise EventPersistenceError("save_tenant", cause=exc) from exc
        await self._event_store.after_commit(aggregate_id, stored)
        return stored

    async def _dispatch(self, stored: Sequence[EventRecord]) -> None:
        if self._outbox is not None:
            return
        await super()._dispatch(stored)

    async def _ensure_unique_name(self, session: AsyncSession, tenant: Tenant) -> None:
        if tenant.is_deleted:
            return
        clash = (
            await session.execute(
                select(tenants.c.id).where(
                    and_(
                        tenants.c.platform_id == tenant.platform_id,
                        tenants.c.name == tenant.name,
                        tenants.c.id != str(tenant.id),
                        tenants.c.status != TenantStatus.DELETED.value,
                    )
                )
            )
        ).first()
        if clash is not None:
            raise DuplicateTenantNameError(tenant.platform_id, tenant.name)

    async def _upsert_projection(self, session: AsyncSession, tenant: Tenant) -> None:
        now = self._clock.now()
        values = {
            "platform_id": tenant.platform_id,
            "name": tenant.name,
            "type": tenant.type.value,
            "status": tenant.status.value,
            "version": tenant.pending_version,
            "updated_at": now,
        }
        result = await session.execute(
            update(tenants).where(tenants.c.id == str(tenant.id)).values(**values)
        )
        if result.rowcount == 0:
            await session.execute(insert(tenants).values(id=str(tenant.id), created_at=now, **values))

    async def _query(self, operation: str, stmt: Any) -> list[Any]:
        try:
            async with self._session_factory() as session:
                return list((await session.execute(stmt)).all())
        except SQLAlchemyError as exc:
            raise EventPersistenceError(operation, cause=exc) from exc


__all__ = ["TenantRepository", "TenantSummary"]
