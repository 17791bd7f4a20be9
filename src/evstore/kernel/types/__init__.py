"""Kernel value types."""

from evstore.kernel.types.ids import EntityId

__all__ = ["EntityId"]
