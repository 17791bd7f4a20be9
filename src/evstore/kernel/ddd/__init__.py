"""DDD building blocks — public re-export surface."""

from evstore.kernel.ddd.aggregate import AggregateRoot
from evstore.kernel.ddd.domain_event import DomainEvent

__all__ = ["AggregateRoot", "DomainEvent"]
