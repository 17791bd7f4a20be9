"""Application messaging – event bus and transactional outbox."""
from evstore.application.messaging.bus import DomainEventBus, Handler, InProcessEventBus
from evstore.application.messaging.outbox import (
    InMemoryOutboxRepository,
    OutboxRecord,
    OutboxRelay,
    OutboxRepository,
    OutboxStatus,
)

__all__ = [
    "DomainEventBus",
    "Handler",
    "InMemoryOutboxRepository",
    "InProcessEventBus",
    "OutboxRecord",
    "OutboxRelay",
    "OutboxRepository",
    "OutboxStatus",
]
