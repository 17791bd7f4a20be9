"""Redis adapter – RedisEventCache."""
from evstore.adapters.redis.cache import RedisEventCache

__all__ = ["RedisEventCache"]
