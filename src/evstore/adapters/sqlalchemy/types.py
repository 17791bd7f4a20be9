"""SQLAlchemy adapter – column types."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from evstore.application.event_sourcing.record import as_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime on every backend.

    Values are converted to UTC on the way in; on the way out a naive value
    (SQLite drops the offset) is tagged as UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:  # noqa: ARG002
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:  # noqa: ARG002
        if value is None:
            return None
        return as_utc(value)


__all__ = ["UTCDateTime"]
