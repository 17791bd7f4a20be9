"""String-based identifier value objects."""

from __future__ import annotations

import dataclasses
import uuid

from evstore.kernel.errors.domain import ValidationError


@dataclasses.dataclass(frozen=True, slots=True)
class _StrId:
    """Base for string-typed identifiers."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError(f"{type(self).__name__} must not be empty")

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class EntityId(_StrId):
    """Aggregate / entity identifier, globally unique (UUID4 by default).

    Aggregate ids double as cache keys and event-stream keys, so two
    aggregates must never share one.

    Examples::

        eid = EntityId.generate()
        eid = EntityId.from_str("3f1c...")
    """

    @classmethod
    def generate(cls) -> "EntityId":
        """Return a new random ``EntityId``."""
        return cls(str(uuid.uuid4()))

    @classmethod
    def from_str(cls, value: str) -> "EntityId":
        """Construct from an existing string identifier."""
        return cls(value)


__all__ = ["EntityId"]
