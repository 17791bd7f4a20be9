"""SQLAlchemy adapter – SqlAlchemyOutboxRepository."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import case, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from evstore.adapters.sqlalchemy.schema import event_outbox
from evstore.application.messaging.outbox import OutboxRecord, OutboxRepository, OutboxStatus
from evstore.kernel.errors import EventPersistenceError


class SqlAlchemyOutboxRepository(OutboxRepository):
    """Outbox repository over the ``event_outbox`` table.

    Pass the session of an open transaction to :meth:`save` to write the
    records atomically with the events; without one the repository opens
    its own transaction.
    """

    def __init__(self, session_factory: Any, max_retries: int = 5) -> None:
        self._session_factory = session_factory
        self._max_retries = max_retries

    async def save(self, records: Sequence[OutboxRecord], session: Any = None) -> None:
        if not records:
            return
        rows = [self._record_to_dict(r) for r in records]
        if session is not None:
            await session.execute(insert(event_outbox), rows)
            return
        await self._write("save_outbox", insert(event_outbox), rows)

    async def get_pending(self, limit: int = 100) -> list[OutboxRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(event_outbox)
                    .where(event_outbox.c.status == OutboxStatus.PENDING.value)
                    .order_by(event_outbox.c.created_at)
                    .limit(limit)
                )
                rows = result.all()
        except SQLAlchemyError as exc:
            raise EventPersistenceError("get_pending_outbox", cause=exc) from exc
        return [self._row_to_record(row) for row in rows]

    async def mark_dispatched(self, record_id: str) -> None:
        await self._write(
            "mark_dispatched",
            update(event_outbox)
            .where(event_outbox.c.id == record_id)
            .values(status=OutboxStatus.DISPATCHED.value, dispatched_at=datetime.now(UTC)),
        )

    async def mark_failed(self, record_id: str, error: str) -> None:
        retry_count = event_outbox.c.retry_count + 1
        await self._write(
            "mark_failed",
            update(event_outbox)
            .where(event_outbox.c.id == record_id)
            .values(
                retry_count=retry_count,
                last_error=error,
                status=case(
                    (retry_count >= self._max_retries, OutboxStatus.FAILED.value),
                    else_=OutboxStatus.PENDING.value,
                ),
            ),
        )

    async def _write(self, operation: str, stmt: Any, params: Any = None) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(stmt, params)
        except SQLAlchemyError as exc:
            raise EventPersistenceError(operation, cause=exc) from exc

    def _record_to_dict(self, record: OutboxRecord) -> dict[str, Any]:
        return {
            "id": record.id,
            "aggregate_id": record.aggregate_id,
            "aggregate_type": record.aggregate_type,
            "event_type": record.event_type,
            "payload": record.payload,
            "status": record.status.value,
            "created_at": record.created_at,
            "dispatched_at": record.dispatched_at,
            "retry_count": record.retry_count,
            "last_error": record.last_error,
        }

    def _row_to_record(self, row: Any) -> OutboxRecord:
        return OutboxRecord(
            id=row.id,
            aggregate_id=row.aggregate_id,
            aggregate_type=row.aggregate_type,
            event_type=row.event_type,
            payload=row.payload or {},
            status=OutboxStatus(row.status),
            created_at=row.created_at,
            dispatched_at=row.dispatched_at,
            retry_count=row.retry_count,
            last_error=row.last_error,
        )


__all__ = ["SqlAlchemyOutboxRepository"]
