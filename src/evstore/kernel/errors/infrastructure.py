"""Infrastructure errors — database, cache and codec failures."""

from __future__ import annotations

from typing import Any

from evstore.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class EventPersistenceError(InfrastructureError):
    """A database operation on the event or ledger tables failed.

    Writes are rolled back before this is raised, so no partial state is
    observable.
    """

    default_code = "event_persistence_error"

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Event store operation '{operation}' failed", **kwargs)
        self.operation = operation


class CacheError(InfrastructureError):
    """The event cache backend failed."""

    default_code = "cache_error"


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = [
    "CacheError",
    "EventPersistenceError",
    "InfrastructureError",
    "SerializationError",
]
