"""Application cache – event cache port, keys, codec and in-memory store."""
from evstore.application.cache.codec import EventListCodec
from evstore.application.cache.in_memory import InMemoryEventCache
from evstore.application.cache.keys import DEFAULT_NAMESPACE, CacheKey
from evstore.application.cache.port import EventCache

__all__ = [
    "DEFAULT_NAMESPACE",
    "CacheKey",
    "EventCache",
    "EventListCodec",
    "InMemoryEventCache",
]
