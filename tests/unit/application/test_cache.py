"""Unit tests for the event cache: keys, codec and in-memory store."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from evstore.application.cache import CacheKey, EventListCodec, InMemoryEventCache
from evstore.application.event_sourcing import EventRecord
from evstore.kernel.errors import SerializationError
from evstore.kernel.time import FrozenClock


class TestCacheKey:
    def test_for_events(self) -> None:
        assert CacheKey.for_events("agg-1") == "events:agg-1"

    def test_qualified(self) -> None:
        assert CacheKey.qualified("event-store", "events:agg-1") == "event-store:events:agg-1"


class TestEventListCodec:
    def test_round_trip_preserves_order_and_fields(self) -> None:
        events = [
            EventRecord(
                event_id=f"e-{v}",
                aggregate_id="agg-1",
                event_type="Happened",
                event_data={"n": v},
                event_metadata={"source": "test"},
                version=v,
                occurred_at=datetime(2024, 1, v, tzinfo=UTC),
                tenant_id="t-1",
                correlation_id="c-1",
            )
            for v in (1, 2, 3)
        ]
        assert EventListCodec.decode(EventListCodec.encode(events)) == events

    def test_decode_bytes(self) -> None:
        assert EventListCodec.decode(b"[]") == []

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}', '[{"event_id": "x"}]'])
    def test_decode_garbage_raises(self, raw: str) -> None:
        with pytest.raises(SerializationError):
            EventListCodec.decode(raw)

    def test_encode_unserialisable_payload_raises(self) -> None:
        record = EventRecord(event_id="e", aggregate_id="a", event_type="T", event_data={"x": object()})
        with pytest.raises(SerializationError):
            EventListCodec.encode([record])


class TestInMemoryEventCache:
    def _cache(self) -> tuple[InMemoryEventCache, FrozenClock]:
        clock = FrozenClock(datetime(2024, 1, 1, tzinfo=UTC))
        return InMemoryEventCache(clock=clock), clock

    def test_get_set_delete(self) -> None:
        async def run() -> None:
            cache, _ = self._cache()
            assert await cache.get("k") is None
            await cache.set("k", "v", 60)
            assert await cache.get("k") == "v"
            await cache.delete("k")
            assert await cache.get("k") is None

        asyncio.run(run())

    def test_entry_expires_after_ttl(self) -> None:
        async def run() -> None:
            cache, clock = self._cache()
            await cache.set("k", "v", 60)
            clock.advance(seconds=59)
            assert await cache.get("k") == "v"
            clock.advance(seconds=1)
            assert await cache.get("k") is None
            assert len(cache) == 0

        asyncio.run(run())

    def test_namespaces_are_isolated(self) -> None:
        async def run() -> None:
            cache, _ = self._cache()
            await cache.set("k", "default", 60)
            await cache.set("k", "other", 60, namespace="other")
            assert await cache.get("k") == "default"
            assert await cache.get("k", namespace="event-store") == "default"
            assert await cache.get("k", namespace="other") == "other"
            await cache.delete("k", namespace="other")
            assert await cache.get("k") == "default"

        asyncio.run(run())

    def test_delete_missing_key_is_noop(self) -> None:
        async def run() -> None:
            cache, _ = self._cache()
            await cache.delete("missing")

        asyncio.run(run())
