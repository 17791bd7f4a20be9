"""Application cache – EventCache port."""
from __future__ import annotations

from typing import Protocol


class EventCache(Protocol):
    """Port: namespaced string cache with per-entry TTL.

    ``namespace=None`` means the implementation's default namespace. The
    cache only ever holds derived data; callers treat every failure as a
    miss.
    """

    async def get(self, key: str, namespace: str | None = None) -> str | None: ...

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int,
        namespace: str | None = None,
    ) -> None: ...

    async def delete(self, key: str, namespace: str | None = None) -> None: ...


__all__ = ["EventCache"]
