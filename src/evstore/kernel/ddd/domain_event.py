"""Domain events raised by aggregates."""

from __future__ import annotations

import dataclasses
import json
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

_ENVELOPE_FIELDS = frozenset({"event_id", "occurred_at"})


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


@dataclasses.dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for domain events.

    Subclasses add their own payload fields::

        @dataclasses.dataclass(frozen=True)
        class TenantRenamed(DomainEvent):
            name: str
            previous_name: str

    The base fields are keyword-only so subclasses may declare required
    fields.
    """

    event_id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(UTC)
    )

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def payload(self) -> dict[str, Any]:
        """Return the subclass fields as a JSON-safe dict."""
        return {
            f.name: _to_json_value(getattr(self, f.name))
            for f in dataclasses.fields(self)
            if f.name not in _ENVELOPE_FIELDS
        }


__all__ = ["DomainEvent"]
