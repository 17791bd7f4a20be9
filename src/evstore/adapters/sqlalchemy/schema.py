"""SQLAlchemy adapter – table definitions.

All tables share one :data:`metadata` so a single :func:`create_schema`
call (or an Alembic autogenerate run) covers them.

``events``
    Append-only event rows. ``(aggregate_id, version)`` is unique, so two
    writers can never both commit the same version.
``aggregates``
    The version ledger: one row per aggregate, ``version`` equal to the
    highest event version.
``snapshots``
    Materialised aggregate state, pruned to the newest few per aggregate.
``event_outbox``
    Events awaiting publication, written in the append's transaction.
``tenants``
    Current-state projection of the ``Tenant`` aggregate, written in the
    same transaction as its events. Names are unique per platform among
    tenants that are not deleted.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.exc import IntegrityError

from evstore.adapters.sqlalchemy.types import UTCDateTime

metadata = MetaData()

events = Table(
    "events",
    metadata,
    Column("event_id", String(64), primary_key=True),
    Column("aggregate_id", String(255), nullable=False),
    Column("event_type", String(255), nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("event_metadata", JSON, nullable=False, default=dict),
    Column("version", Integer, nullable=False),
    Column("occurred_at", UTCDateTime(timezone=True), nullable=False),
    Column("tenant_id", String(255), nullable=True),
    Column("correlation_id", String(255), nullable=True),
    Column("causation_id", String(255), nullable=True),
    UniqueConstraint("aggregate_id", "version", name="uq_events_aggregate_version"),
    Index("ix_events_event_type_occurred_at", "event_type", "occurred_at"),
    Index("ix_events_tenant_id_occurred_at", "tenant_id", "occurred_at"),
)

aggregates = Table(
    "aggregates",
    metadata,
    Column("aggregate_id", String(255), nullable=False),
    Column("version", Integer, nullable=False),
    Column("created_at", UTCDateTime(timezone=True), nullable=False),
    Column("updated_at", UTCDateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("aggregate_id", name="pk_aggregates"),
)

snapshots = Table(
    "snapshots",
    metadata,
    Column("snapshot_id", String(64), primary_key=True),
    Column("aggregate_id", String(255), nullable=False, index=True),
    Column("aggregate_type", String(255), nullable=False),
    Column("version", Integer, nullable=False),
    Column("state", JSON, nullable=False),
    Column("tenant_id", String(255), nullable=True),
    Column("taken_at", UTCDateTime(timezone=True), nullable=False),
    UniqueConstraint("aggregate_id", "version", name="uq_snapshots_aggregate_version"),
)

event_outbox = Table(
    "event_outbox",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("aggregate_id", String(255), nullable=False),
    Column("aggregate_type", String(255), nullable=False, default=""),
    Column("event_type", String(255), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(32), nullable=False, index=True),
    Column("created_at", UTCDateTime(timezone=True), nullable=False),
    Column("dispatched_at", UTCDateTime(timezone=True), nullable=True),
    Column("retry_count", Integer, nullable=False, default=0),
    Column("last_error", Text, nullable=True),
)

tenants = Table(
    "tenants",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("platform_id", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("type", String(32), nullable=False),
    Column("status", String(32), nullable=False),
    Column("version", Integer, nullable=False),
    Column("created_at", UTCDateTime(timezone=True), nullable=False),
    Column("updated_at", UTCDateTime(timezone=True), nullable=False),
    Index("ix_tenants_platform_id_name", "platform_id", "name"),
)

# partial: a deleted tenant's name may be reused
Index(
    "uq_tenants_platform_id_name_active",
    tenants.c.platform_id,
    tenants.c.name,
    unique=True,
    postgresql_where=tenants.c.status != "DELETED",
    sqlite_where=tenants.c.status != "DELETED",
)


def is_unique_violation(exc: IntegrityError, name: str, *columns: str) -> bool:
    """Return whether *exc* was raised by the unique constraint or index *name*.

    PostgreSQL reports the constraint name; SQLite reports the violated
    ``table.column`` list instead, which is what *columns* matches.
    """
    message = str(exc.orig)
    return f'"{name}"' in message or f"failed: {', '.join(columns)}" in message


async def create_schema(engine: Any) -> None:
    """Create every table that does not exist yet.

    Parameters
    ----------
    engine:
        An :class:`~sqlalchemy.ext.asyncio.AsyncEngine`.
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def drop_schema(engine: Any) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


__all__ = [
    "aggregates",
    "create_schema",
    "drop_schema",
    "event_outbox",
    "events",
    "is_unique_violation",
    "metadata",
    "snapshots",
    "tenants",
]
