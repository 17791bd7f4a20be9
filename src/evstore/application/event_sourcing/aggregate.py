"""Application event sourcing – EventSourcedAggregate base class."""

from __future__ import annotations

import abc
from typing import Any

from evstore.application.event_sourcing.record import EventRecord
from evstore.kernel.ddd.aggregate import AggregateRoot
from evstore.kernel.ddd.domain_event import DomainEvent


class EventSourcedAggregate(AggregateRoot, abc.ABC):
    """Aggregate root whose state is a fold over its events.

    Raising an event and replaying a stored one go through the same
    :meth:`_apply` hook, so live state and replayed state cannot drift::

        class Counter(EventSourcedAggregate):
            def __init__(self, id: EntityId) -> None:
                super().__init__(id)
                self.value = 0

            def increment(self, by: int) -> None:
                self._raise_event(Incremented(by=by))

            def _apply(self, event_type: str, data: dict[str, Any]) -> None:
                if event_type == "Incremented":
                    self.value += data["by"]
    """

    @abc.abstractmethod
    def _apply(self, event_type: str, data: dict[str, Any]) -> None:
        """Mutate state for one event. Must not raise new events."""

    def _raise_event(self, event: DomainEvent) -> None:
        self._apply(event.event_type, event.payload())
        super()._raise_event(event)

    def apply_stored_event(self, record: EventRecord) -> None:
        """Replay one committed event and move ``version`` to it."""
        self._apply(record.event_type, record.event_data)
        self._version = record.version

    def to_snapshot(self) -> dict[str, Any]:
        """Return a JSON-safe dict of the aggregate's state.

        The default raises; aggregates that support snapshots override it
        together with :meth:`restore_snapshot`.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support snapshots")

    def restore_snapshot(self, state: dict[str, Any], version: int) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support snapshots")

    @classmethod
    def supports_snapshots(cls) -> bool:
        return cls.to_snapshot is not EventSourcedAggregate.to_snapshot

    @classmethod
    def aggregate_type(cls) -> str:
        """Logical type name recorded on snapshots (defaults to class name)."""
        return cls.__name__


__all__ = ["EventSourcedAggregate"]
