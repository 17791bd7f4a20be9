"""SQLAlchemy adapter – SQLAlchemySnapshotStore."""
from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from evstore.adapters.sqlalchemy.schema import snapshots
from evstore.application.event_sourcing.snapshot import SnapshotRecord, SnapshotStore
from evstore.kernel.errors import EventPersistenceError
from evstore.observability.logging import get_logger

logger = get_logger(__name__)


def _row_to_snapshot(row: Any) -> SnapshotRecord:
    return SnapshotRecord(
        snapshot_id=row.snapshot_id,
        aggregate_id=row.aggregate_id,
        aggregate_type=row.aggregate_type,
        version=row.version,
        state=row.state or {},
        tenant_id=row.tenant_id,
        taken_at=row.taken_at,
    )


class SQLAlchemySnapshotStore(SnapshotStore):
    """Snapshot store over the ``snapshots`` table.

    Saving a snapshot replaces any existing one at the same version and
    prunes the aggregate down to its newest ``retain_count`` snapshots in
    the same transaction.
    """

    def __init__(self, session_factory: Any, retain_count: int = 3) -> None:
        self._session_factory = session_factory
        self._retain_count = retain_count

    async def save_snapshot(self, snapshot: SnapshotRecord) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(snapshots)
                        .where(snapshots.c.aggregate_id == snapshot.aggregate_id)
                        .where(snapshots.c.version == snapshot.version)
                    )
                    await session.execute(
                        snapshots.insert().values(
                            snapshot_id=snapshot.snapshot_id,
                            aggregate_id=snapshot.aggregate_id,
                            aggregate_type=snapshot.aggregate_type,
                            version=snapshot.version,
                            state=snapshot.state,
                            tenant_id=snapshot.tenant_id,
                            taken_at=snapshot.taken_at,
                        )
                    )
                    stale = (
                        await session.execute(
                            select(snapshots.c.snapshot_id)
                            .where(snapshots.c.aggregate_id == snapshot.aggregate_id)
                            .order_by(snapshots.c.version.desc())
                            .offset(self._retain_count)
                        )
                    ).scalars().all()
                    if stale:
                        await session.execute(
                            delete(snapshots).where(snapshots.c.snapshot_id.in_(stale))
                        )
        except SQLAlchemyError as exc:
            logger.error(
                "snapshot_store.save_failed",
                aggregate_id=snapshot.aggregate_id,
                version=snapshot.version,
                error=str(exc),
            )
            raise EventPersistenceError("save_snapshot", cause=exc) from exc
        logger.debug(
            "snapshot_store.saved",
            aggregate_id=snapshot.aggregate_id,
            version=snapshot.version,
            pruned=len(stale),
        )

    async def get_latest(self, aggregate_id: str) -> SnapshotRecord | None:
        return await self._first(
            "get_latest",
            select(snapshots)
            .where(snapshots.c.aggregate_id == aggregate_id)
            .order_by(snapshots.c.version.desc())
            .limit(1),
        )

    async def get_at_version(self, aggregate_id: str, version: int) -> SnapshotRecord | None:
        return await self._first(
            "get_at_version",
            select(snapshots)
            .where(snapshots.c.aggregate_id == aggregate_id)
            .where(snapshots.c.version <= version)
            .order_by(snapshots.c.version.desc())
            .limit(1),
        )

    async def delete_snapshots(self, aggregate_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(snapshots).where(snapshots.c.aggregate_id == aggregate_id)
                    )
        except SQLAlchemyError as exc:
            raise EventPersistenceError("delete_snapshots", cause=exc) from exc

    async def _first(self, operation: str, stmt: Any) -> SnapshotRecord | None:
        try:
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).first()
        except SQLAlchemyError as exc:
            raise EventPersistenceError(operation, cause=exc) from exc
        return _row_to_snapshot(row) if row is not None else None


__all__ = ["SQLAlchemySnapshotStore"]
