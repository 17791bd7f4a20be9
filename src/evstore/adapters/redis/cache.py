"""Redis adapter – RedisEventCache."""
from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from evstore.application.cache.keys import DEFAULT_NAMESPACE, CacheKey
from evstore.kernel.errors import CacheError


class RedisEventCache:
    """:class:`~evstore.application.cache.EventCache` backed by ``redis.asyncio``.

    Keys are stored as ``"{namespace}:{key}"``; the TTL is set atomically
    with the value (``SET ... EX``). Redis failures are raised as
    :class:`~evstore.kernel.errors.CacheError`.
    """

    def __init__(
        self,
        url: str,
        default_namespace: str = DEFAULT_NAMESPACE,
        **kwargs: Any,
    ) -> None:
        self._client = aioredis.from_url(url, decode_responses=True, **kwargs)
        self._default_namespace = default_namespace

    def _key(self, key: str, namespace: str | None) -> str:
        return CacheKey.qualified(namespace or self._default_namespace, key)

    async def get(self, key: str, namespace: str | None = None) -> str | None:
        try:
            value = await self._client.get(self._key(key, namespace))
        except RedisError as exc:
            raise CacheError(f"Redis GET failed: {exc}", cause=exc) from exc
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int,
        namespace: str | None = None,
    ) -> None:
        try:
            await self._client.set(self._key(key, namespace), value, ex=ttl_seconds)
        except RedisError as exc:
            raise CacheError(f"Redis SET failed: {exc}", cause=exc) from exc

    async def delete(self, key: str, namespace: str | None = None) -> None:
        try:
            await self._client.delete(self._key(key, namespace))
        except RedisError as exc:
            raise CacheError(f"Redis DEL failed: {exc}", cause=exc) from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["RedisEventCache"]
