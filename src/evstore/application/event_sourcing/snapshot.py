"""Application event sourcing – snapshots of aggregate state."""

from __future__ import annotations

import abc
import dataclasses
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4


@dataclasses.dataclass(frozen=True)
class SnapshotRecord:
    """Materialised aggregate state as of ``version``."""

    aggregate_id: str
    aggregate_type: str
    version: int
    state: dict[str, Any]
    tenant_id: str | None = None
    snapshot_id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    taken_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))


@dataclasses.dataclass(frozen=True)
class SnapshotPolicy:
    """Decide when to snapshot and how many snapshots to keep.

    A snapshot is due whenever an append crosses a multiple of
    ``interval``, so a batch that jumps from version 98 to 103 still
    triggers one at ``interval=100``.
    """

    interval: int = 100
    retain_count: int = 3

    def should_snapshot(self, old_version: int, new_version: int) -> bool:
        if new_version <= old_version:
            return False
        return new_version // self.interval > old_version // self.interval


class SnapshotStore(abc.ABC):
    """Port — store and retrieve aggregate snapshots.

    Snapshots bound replay cost for long streams; they are derived data and
    can be dropped at any time.
    """

    @abc.abstractmethod
    async def save_snapshot(self, snapshot: SnapshotRecord) -> None:
        """Persist *snapshot* and prune older ones beyond the retain count."""

    @abc.abstractmethod
    async def get_latest(self, aggregate_id: str) -> SnapshotRecord | None: ...

    @abc.abstractmethod
    async def get_at_version(self, aggregate_id: str, version: int) -> SnapshotRecord | None:
        """Return the newest snapshot with ``snapshot.version <= version``."""

    @abc.abstractmethod
    async def delete_snapshots(self, aggregate_id: str) -> None: ...


class InMemorySnapshotStore(SnapshotStore):
    """In-memory :class:`SnapshotStore` for tests and local development."""

    def __init__(self, retain_count: int = 3) -> None:
        self._retain_count = retain_count
        self._snapshots: dict[str, list[SnapshotRecord]] = {}

    async def save_snapshot(self, snapshot: SnapshotRecord) -> None:
        kept = [s for s in self._snapshots.get(snapshot.aggregate_id, []) if s.version != snapshot.version]
        kept.append(snapshot)
        kept.sort(key=lambda s: s.version, reverse=True)
        self._snapshots[snapshot.aggregate_id] = kept[: self._retain_count]

    async def get_latest(self, aggregate_id: str) -> SnapshotRecord | None:
        snapshots = self._snapshots.get(aggregate_id)
        return snapshots[0] if snapshots else None

    async def get_at_version(self, aggregate_id: str, version: int) -> SnapshotRecord | None:
        for snap in self._snapshots.get(aggregate_id, []):
            if snap.version <= version:
                return snap
        return None

    async def delete_snapshots(self, aggregate_id: str) -> None:
        self._snapshots.pop(aggregate_id, None)

    def all_snapshots(self, aggregate_id: str) -> list[SnapshotRecord]:
        return list(self._snapshots.get(aggregate_id, []))


__all__ = ["InMemorySnapshotStore", "SnapshotPolicy", "SnapshotRecord", "SnapshotStore"]
