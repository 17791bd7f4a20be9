"""Application cache – CacheKey builder."""
from __future__ import annotations

__all__ = ["CacheKey"]

DEFAULT_NAMESPACE = "event-store"


class CacheKey:
    """Factory for deterministic cache key strings."""

    @staticmethod
    def for_events(aggregate_id: str) -> str:
        return f"events:{aggregate_id}"

    @staticmethod
    def qualified(namespace: str, key: str) -> str:
        """Key as stored in a flat keyspace such as Redis."""
        return f"{namespace}:{key}"
