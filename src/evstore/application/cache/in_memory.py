"""Application cache – InMemoryEventCache."""
from __future__ import annotations

from evstore.application.cache.keys import DEFAULT_NAMESPACE
from evstore.kernel.time import Clock, SystemClock


class InMemoryEventCache:
    """Dict-backed :class:`EventCache` with lazy expiry.

    Entries expire when read after their deadline. Pass a
    :class:`~evstore.kernel.time.FrozenClock` to control time in tests.
    """

    def __init__(
        self,
        default_namespace: str = DEFAULT_NAMESPACE,
        clock: Clock | None = None,
    ) -> None:
        self._default_namespace = default_namespace
        self._clock = clock or SystemClock()
        self._entries: dict[tuple[str, str], tuple[str, float]] = {}

    def _slot(self, key: str, namespace: str | None) -> tuple[str, str]:
        return (namespace or self._default_namespace, key)

    async def get(self, key: str, namespace: str | None = None) -> str | None:
        slot = self._slot(key, namespace)
        entry = self._entries.get(slot)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock.timestamp() >= expires_at:
            del self._entries[slot]
            return None
        return value

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int,
        namespace: str | None = None,
    ) -> None:
        expires_at = self._clock.timestamp() + ttl_seconds
        self._entries[self._slot(key, namespace)] = (value, expires_at)

    async def delete(self, key: str, namespace: str | None = None) -> None:
        self._entries.pop(self._slot(key, namespace), None)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["InMemoryEventCache"]
