"""AggregateRoot — identity, committed version and uncommitted events."""

from __future__ import annotations

from evstore.kernel.ddd.domain_event import DomainEvent
from evstore.kernel.types.ids import EntityId


class AggregateRoot:
    """Consistency boundary that buffers the domain events it raises.

    ``version`` is the last *committed* version, i.e. the value to pass as
    ``expected_version`` when the buffered events are appended. It only
    moves forward in :meth:`mark_events_committed`, after the store accepted
    the batch.
    """

    def __init__(self, id: EntityId) -> None:  # noqa: A002
        self._id = id
        self._version = 0
        self._uncommitted: list[DomainEvent] = []

    @property
    def id(self) -> EntityId:
        return self._id

    @property
    def version(self) -> int:
        return self._version

    @property
    def uncommitted_events(self) -> list[DomainEvent]:
        return list(self._uncommitted)

    @property
    def pending_version(self) -> int:
        """Version the aggregate reaches once its buffer is committed."""
        return self._version + len(self._uncommitted)

    def _raise_event(self, event: DomainEvent) -> None:
        self._uncommitted.append(event)

    def mark_events_committed(self) -> None:
        """Advance ``version`` past the buffered events and clear the buffer."""
        self._version += len(self._uncommitted)
        self._uncommitted.clear()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:  # pragma: no cover
        return f"{type(self).__name__}(id={self._id!r}, version={self._version})"


__all__ = ["AggregateRoot"]
