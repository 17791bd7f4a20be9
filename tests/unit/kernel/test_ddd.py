"""Unit tests for kernel DDD building blocks, ids and clocks."""

from __future__ import annotations

import dataclasses
from datetime import UTC, date, datetime, timedelta
from enum import Enum

import pytest

from evstore.kernel.ddd import AggregateRoot, DomainEvent
from evstore.kernel.errors import ValidationError
from evstore.kernel.time import FrozenClock, SystemClock, utc_now
from evstore.kernel.types import EntityId


class Colour(str, Enum):
    RED = "red"


@dataclasses.dataclass(frozen=True)
class ThingHappened(DomainEvent):
    name: str
    colour: Colour = Colour.RED
    on: date | None = None


class Thing(AggregateRoot):
    def touch(self, name: str) -> None:
        self._raise_event(ThingHappened(name=name))


class TestDomainEvent:
    def test_envelope_defaults(self) -> None:
        event = ThingHappened(name="a")
        assert event.event_id
        assert event.occurred_at.tzinfo is not None
        assert event.event_type == "ThingHappened"

    def test_payload_excludes_envelope_and_is_json_safe(self) -> None:
        event = ThingHappened(name="a", on=date(2024, 1, 2))
        assert event.payload() == {"name": "a", "colour": "red", "on": "2024-01-02"}

    def test_unique_ids(self) -> None:
        assert ThingHappened(name="a").event_id != ThingHappened(name="a").event_id

    def test_frozen(self) -> None:
        event = ThingHappened(name="a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.name = "b"  # type: ignore[misc]


class TestAggregateRoot:
    def test_new_aggregate_is_version_zero(self) -> None:
        thing = Thing(EntityId.generate())
        assert thing.version == 0
        assert thing.uncommitted_events == []

    def test_raise_event_buffers_without_moving_version(self) -> None:
        thing = Thing(EntityId.generate())
        thing.touch("a")
        thing.touch("b")
        assert thing.version == 0
        assert thing.pending_version == 2
        assert [e.name for e in thing.uncommitted_events] == ["a", "b"]  # type: ignore[attr-defined]

    def test_mark_committed_advances_version(self) -> None:
        thing = Thing(EntityId.generate())
        thing.touch("a")
        thing.mark_events_committed()
        assert thing.version == 1
        assert thing.uncommitted_events == []

    def test_uncommitted_events_is_a_copy(self) -> None:
        thing = Thing(EntityId.generate())
        thing.touch("a")
        thing.uncommitted_events.clear()
        assert len(thing.uncommitted_events) == 1

    def test_equality_by_id(self) -> None:
        eid = EntityId.generate()
        assert Thing(eid) == Thing(eid)
        assert hash(Thing(eid)) == hash(Thing(eid))
        assert Thing(eid) != Thing(EntityId.generate())


class TestEntityId:
    def test_generate_is_unique(self) -> None:
        assert EntityId.generate() != EntityId.generate()

    def test_str(self) -> None:
        assert str(EntityId.from_str("abc")) == "abc"

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EntityId("")


class TestClocks:
    def test_frozen_clock_advance(self) -> None:
        start = datetime(2024, 1, 1, tzinfo=UTC)
        clock = FrozenClock(start)
        clock.advance(seconds=30)
        assert clock.now() == start + timedelta(seconds=30)
        assert clock.timestamp() == (start + timedelta(seconds=30)).timestamp()

    def test_system_clock_is_utc(self) -> None:
        assert SystemClock().now().tzinfo is not None
        assert utc_now().tzinfo is not None
