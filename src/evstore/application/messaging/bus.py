"""Application messaging – DomainEventBus port and InProcessEventBus."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Callable, Coroutine, Protocol

from evstore.application.event_sourcing.record import EventRecord
from evstore.observability.logging import get_logger

#: Type alias for an async event handler function.
Handler = Callable[[EventRecord], Coroutine[Any, Any, None]]

logger = get_logger(__name__)


class DomainEventBus(Protocol):
    """Port: publishes committed events to interested handlers.

    Only events that are already durable in the event store are published,
    so handlers never observe an event that was later rolled back.

    Example::

        bus = InProcessEventBus()
        bus.subscribe("TenantCreated", provision_tenant)
        await bus.publish(record)
    """

    async def publish(self, event: EventRecord) -> None:
        """Deliver *event* to every handler registered for its type."""
        ...

    async def publish_all(self, events: Sequence[EventRecord]) -> None:
        """Deliver *events* in order; one failing event does not stop the rest."""
        ...

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Register *handler* for events whose ``event_type`` matches."""
        ...


class InProcessEventBus:
    """Fan-out bus that calls handlers in the current event loop.

    Handlers for one event run concurrently via :func:`asyncio.gather`; the
    first handler error is re-raised after all handlers finished.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._catch_all: list[Handler] = []

    def subscribe(self, event_type: str, handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Register *handler* for every event type."""
        self._catch_all.append(handler)

    def handlers_for(self, event_type: str) -> list[Handler]:
        return [*self._handlers.get(event_type, []), *self._catch_all]

    async def publish(self, event: EventRecord) -> None:
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            return
        results = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.error(
                "event_bus.handler_failed",
                event_type=event.event_type,
                event_id=event.event_id,
                failures=len(errors),
            )
            raise errors[0]

    async def publish_all(self, events: Sequence[EventRecord]) -> None:
        """Publish every event in order, then re-raise the first failure."""
        first_error: Exception | None = None
        for event in events:
            try:
                await self.publish(event)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error


__all__ = ["DomainEventBus", "Handler", "InProcessEventBus"]
