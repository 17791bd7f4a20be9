"""Application cache – JSON codec for cached event lists."""
from __future__ import annotations

import json
from collections.abc import Sequence

from evstore.application.event_sourcing.record import EventRecord
from evstore.kernel.errors import SerializationError


class EventListCodec:
    """Encode an aggregate's event list to a JSON string and back."""

    @staticmethod
    def encode(events: Sequence[EventRecord]) -> str:
        try:
            return json.dumps([e.to_dict() for e in events], separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode event list: {exc}", payload_type="list[EventRecord]", cause=exc
            ) from exc

    @staticmethod
    def decode(raw: str | bytes) -> list[EventRecord]:
        try:
            items = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot decode event list: {exc}", payload_type="list[EventRecord]", cause=exc
            ) from exc
        if not isinstance(items, list):
            raise SerializationError(
                "Cached event list is not a JSON array", payload_type="list[EventRecord]"
            )
        return [EventRecord.from_dict(item) for item in items]


__all__ = ["EventListCodec"]
