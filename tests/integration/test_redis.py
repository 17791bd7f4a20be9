"""Integration tests for the Redis event cache.

Uses testcontainers to spawn a real Redis instance.
Run with: PYTHONPATH=src pytest tests/integration/test_redis.py -m integration -v
"""
from __future__ import annotations

import asyncio

import pytest

from evstore.adapters.redis import RedisEventCache

RedisContainer = pytest.importorskip("testcontainers.redis").RedisContainer


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _run(coro):  # type: ignore[no-untyped-def]
    return asyncio.run(coro)


def _redis_url(container) -> str:  # type: ignore[no-untyped-def]
    host = container.get_container_host_ip()
    port = container.get_exposed_port(container.port)
    return f"redis://{host}:{port}/0"


@pytest.mark.integration
class TestRedisEventCacheIntegration:
    """Real Redis event cache tests."""

    def test_set_get_delete_with_namespaces(self) -> None:
        with RedisContainer() as container:
            url = _redis_url(container)

            async def run() -> None:
                cache = RedisEventCache(url, default_namespace="event-store")
                assert await cache.ping()
                await cache.set("events:agg-1", "[]", 60)
                await cache.set("events:agg-1", "[1]", 60, namespace="other")
                assert await cache.get("events:agg-1") == "[]"
                assert await cache.get("events:agg-1", namespace="other") == "[1]"
                await cache.delete("events:agg-1")
                assert await cache.get("events:agg-1") is None
                await cache.close()

            _run(run())

    def test_entries_expire(self) -> None:
        with RedisContainer() as container:
            url = _redis_url(container)

            async def run() -> None:
                cache = RedisEventCache(url)
                await cache.set("events:agg-1", "[]", 1)
                await asyncio.sleep(1.5)
                assert await cache.get("events:agg-1") is None
                await cache.close()

            _run(run())
