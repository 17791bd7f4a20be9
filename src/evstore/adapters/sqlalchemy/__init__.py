"""SQLAlchemy adapter – event store, snapshots, outbox, schema and sessions."""
from evstore.adapters.sqlalchemy.event_store import SQLAlchemyEventStore
from evstore.adapters.sqlalchemy.outbox import SqlAlchemyOutboxRepository
from evstore.adapters.sqlalchemy.schema import create_schema, drop_schema, metadata
from evstore.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from evstore.adapters.sqlalchemy.snapshot_store import SQLAlchemySnapshotStore
from evstore.adapters.sqlalchemy.types import UTCDateTime

__all__ = [
    "SQLAlchemyEventStore",
    "SQLAlchemySnapshotStore",
    "SqlAlchemyOutboxRepository",
    "SqlAlchemySessionFactory",
    "UTCDateTime",
    "create_schema",
    "drop_schema",
    "metadata",
]
