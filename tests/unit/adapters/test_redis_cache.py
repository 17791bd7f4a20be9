"""Unit tests for RedisEventCache — no running Redis required."""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from evstore.kernel.errors import CacheError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_cache(**kwargs: Any) -> tuple[Any, MagicMock, MagicMock]:
    """Return (RedisEventCache, mock_client, mock_aioredis)."""
    mock_client = MagicMock()
    mock_client.get = AsyncMock(return_value=None)
    mock_client.set = AsyncMock()
    mock_client.delete = AsyncMock()
    mock_client.ping = AsyncMock(return_value=True)
    mock_client.aclose = AsyncMock()

    import evstore.adapters.redis.cache as cache_mod

    mock_aioredis = MagicMock()
    mock_aioredis.from_url = MagicMock(return_value=mock_client)

    with patch.object(cache_mod, "aioredis", mock_aioredis):
        from evstore.adapters.redis.cache import RedisEventCache
        cache = RedisEventCache("redis://localhost:6379/0", **kwargs)

    return cache, mock_client, mock_aioredis


# ---------------------------------------------------------------------------
# RedisEventCache
# ---------------------------------------------------------------------------


class TestRedisEventCache:
    def test_real_client_built_without_connecting(self) -> None:
        import redis.asyncio

        import evstore.adapters.redis.cache as cache_mod

        assert cache_mod.aioredis is redis.asyncio
        cache = cache_mod.RedisEventCache("redis://localhost:6379/0")
        assert isinstance(cache._client, redis.asyncio.Redis)

    def test_client_built_from_url(self) -> None:
        _, _, aioredis = _make_cache(socket_timeout=2)
        aioredis.from_url.assert_called_once_with(
            "redis://localhost:6379/0", decode_responses=True, socket_timeout=2
        )

    def test_get_uses_default_namespace(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            client.get = AsyncMock(return_value="[]")
            assert await cache.get("events:agg-1") == "[]"
            client.get.assert_awaited_once_with("event-store:events:agg-1")
        asyncio.run(run())

    def test_get_miss_returns_none(self) -> None:
        async def run() -> None:
            cache, _, _ = _make_cache()
            assert await cache.get("events:missing") is None
        asyncio.run(run())

    def test_get_decodes_bytes(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            client.get = AsyncMock(return_value=b"[1]")
            assert await cache.get("k") == "[1]"
        asyncio.run(run())

    def test_set_with_ttl_and_explicit_namespace(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            await cache.set("events:agg-1", "[]", 120, namespace="tenants")
            client.set.assert_awaited_once_with("tenants:events:agg-1", "[]", ex=120)
        asyncio.run(run())

    def test_custom_default_namespace(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache(default_namespace="svc")
            await cache.delete("events:agg-1")
            client.delete.assert_awaited_once_with("svc:events:agg-1")
        asyncio.run(run())

    @pytest.mark.parametrize("method", ["get", "set", "delete"])
    def test_redis_errors_become_cache_errors(self, method: str) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            setattr(client, method, AsyncMock(side_effect=RedisConnectionError("refused")))
            args: tuple[Any, ...] = ("k", "v", 60) if method == "set" else ("k",)
            with pytest.raises(CacheError) as info:
                await getattr(cache, method)(*args)
            assert isinstance(info.value.__cause__, RedisConnectionError)
        asyncio.run(run())

    def test_ping(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            assert await cache.ping() is True
            client.ping = AsyncMock(side_effect=RedisConnectionError("down"))
            assert await cache.ping() is False
        asyncio.run(run())

    def test_close(self) -> None:
        async def run() -> None:
            cache, client, _ = _make_cache()
            await cache.close()
            client.aclose.assert_awaited_once()
        asyncio.run(run())
